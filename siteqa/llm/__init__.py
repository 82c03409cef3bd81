"""LLM access package.

Module split:
    - `provider_config`: environment-driven model, endpoint and credential settings.
    - `client`: Gemini HTTP transport and response parsing.
    - `retry`: retry policy value and async retry wrapper.
    - `service`: prompt-to-answer adapter applying retry and model discovery.
"""
