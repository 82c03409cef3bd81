"""Website retrieval for grounding excerpts (untrusted page text)."""
