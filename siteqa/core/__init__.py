"""Core orchestration package.

Composition:
    - `engine`: ask pipeline (`AskEngine`) and the process-wide engine accessor.
    - `ask_types`: request/response schema and per-request retrieval values.
"""
