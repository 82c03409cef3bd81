"""Answer cache package.

Provides the `AnswerCache` protocol and its process-lifetime in-memory
implementation. Nothing here survives a restart.
"""
