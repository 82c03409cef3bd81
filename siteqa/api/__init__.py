"""SiteQA adapter package.

Architectural role:
- Defines the external interaction boundary for HTTP and CLI interfaces.
- Performs transport-level validation and response shaping.
- Delegates retrieval and generation to the core layer.
"""
