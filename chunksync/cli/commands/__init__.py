# chunksync/cli/commands/__init__.py
"""CLI command implementations (imported lazily by chunksync.cli.cli)."""
