# chunksync/logging/tags.py
"""
Subsystem tags used as the first token of log messages.

Changing a tag here updates it project-wide.
"""

CHUNKING = "[CHUNKING]"
MERKLE = "[MERKLE]"
STORE = "[STORE]"
EMBEDDING = "[EMBED]"
SYNC = "[SYNC]"
INDEX = "[INDEX]"
CONFIG = "[CONFIG]"
HTTP = "[HTTP]"
CLI = "[CLI]"
