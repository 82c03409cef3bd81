"""Retrieval package.

Scope:
    - `url_selector`: candidate page URLs per question and site.
    - `web`: sitemap discovery, page fetching and markup stripping.
"""
