"""Domain models.

Pure, strict data structures (Pydantic v2). The domain knows nothing about
HTTP, the CLI, or the platform SDK: only the concepts of a lookup.
"""
