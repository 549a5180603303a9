# chunksync/ingest/scanner.py
"""
Workspace scanner.

Walks a project directory, keeps files with an indexable suffix, skips
ignored path components (``.git``, ``node_modules``, the state directory
itself, ...), and reads each file as UTF-8 text.

Paths in the result are project-relative and "/"-normalized; they are
used as keys in the chunk store and the Merkle tree.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from chunksync.config.schema import ScanConfig
from chunksync.ingest.hashing import compute_text_hash
from chunksync.ingest.merkle import normalize_path
from chunksync.logging.logger import get_logger
from chunksync.logging.tags import INDEX

logger = get_logger(__name__)


@dataclass(frozen=True)
class ScannedDocument:
    """One readable, indexable file."""

    path: str  # project-relative, "/"-separated
    content: str
    content_hash: str
    mtime_epoch: float
    size_bytes: int


@dataclass
class ScanResult:
    root: str
    files: List[ScannedDocument] = field(default_factory=list)
    errors: List[Tuple[str, str]] = field(default_factory=list)  # (path, error_message)

    @property
    def total_scanned(self) -> int:
        return len(self.files)

    @property
    def total_errors(self) -> int:
        return len(self.errors)

    def by_path(self) -> Dict[str, ScannedDocument]:
        return {doc.path: doc for doc in self.files}


class WorkspaceScanner:
    """
    Usage:
        scanner = WorkspaceScanner.from_config(config.scan)
        result = scanner.scan(project_root)
        for doc in result.files:
            print(doc.path, doc.content_hash)
    """

    def __init__(
        self,
        extensions: Optional[Sequence[str]] = None,
        ignored: Optional[Iterable[str]] = None,
    ) -> None:
        defaults = ScanConfig()
        self._extensions = tuple(e.lower() for e in (extensions or defaults.extensions))
        self._ignored = frozenset(ignored if ignored is not None else defaults.ignored)

    @classmethod
    def from_config(cls, config: ScanConfig) -> "WorkspaceScanner":
        return cls(extensions=config.extensions, ignored=config.ignored)

    def is_indexable(self, path: Union[str, Path]) -> bool:
        normalized = normalize_path(path)
        if any(part in self._ignored for part in normalized.split("/")):
            return False
        return normalized.lower().endswith(self._extensions)

    def scan(self, root: Union[str, Path]) -> ScanResult:
        root_path = Path(root).resolve()
        result = ScanResult(root=str(root_path))

        for file_path in self._walk(root_path):
            rel = normalize_path(file_path.relative_to(root_path).as_posix())
            try:
                result.files.append(self._read(file_path, rel))
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"{INDEX} Skipping unreadable file {rel}: {e}")
                result.errors.append((rel, str(e)))

        result.files.sort(key=lambda doc: doc.path)
        logger.debug(f"{INDEX} Scanned {result.total_scanned} files under {root_path}")
        return result

    def read(self, root: Union[str, Path], rel_path: str) -> Optional[ScannedDocument]:
        """Read one project-relative file. Returns None if it is gone or not indexable."""
        if not self.is_indexable(rel_path):
            return None
        file_path = Path(root).resolve() / rel_path
        if not file_path.is_file():
            return None
        return self._read(file_path, normalize_path(rel_path))

    def _walk(self, root_path: Path) -> Iterator[Path]:
        for file_path in root_path.rglob("*"):
            if not file_path.is_file():
                continue
            if self.is_indexable(file_path.relative_to(root_path).as_posix()):
                yield file_path

    @staticmethod
    def _read(file_path: Path, rel: str) -> ScannedDocument:
        raw = file_path.read_bytes()
        content = raw.decode("utf-8")
        stat = file_path.stat()
        return ScannedDocument(
            path=rel,
            content=content,
            content_hash=compute_text_hash(content),
            mtime_epoch=stat.st_mtime,
            size_bytes=stat.st_size,
        )


__all__ = ["ScannedDocument", "ScanResult", "WorkspaceScanner"]
