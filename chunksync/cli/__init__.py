# chunksync/cli/__init__.py
"""Command line interface."""
