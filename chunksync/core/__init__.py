# chunksync/core/__init__.py
"""Shared infrastructure: HTTP, project paths and scheduling."""
