"""Prompting package.

Deterministic prompt-construction helpers. No retrieval, model invocation or
answer post-processing happens here.
"""
