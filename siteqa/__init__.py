"""SiteQA: grounded answers to questions about a website.

Subpackages:
    - `api`: HTTP and CLI adapters.
    - `core`: request orchestration and data contracts.
    - `retrieval`: URL selection, sitemap discovery and page fetching.
    - `prompting`: grounded prompt assembly.
    - `llm`: model transport, retry policy and provider configuration.
    - `memory`: process-lifetime answer cache.
    - `nlp`: preset detection.
"""
