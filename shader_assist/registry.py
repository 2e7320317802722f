"""
Per-file change state for watched shaders.

Maps a file's canonical path to the last modification time
that triggered (or was registered without) a compile.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple


@dataclass
class FileEntry:
    """Last-known state of one watched shader file."""
    last_write_time: float


class FileRegistry:
    """
    Key-value store of FileEntry keyed by file identity.

    Only the watch loop thread mutates it. Entries are never evicted;
    files removed from disk simply leave a stale entry behind.
    """

    def __init__(self):
        self._entries: Dict[Path, FileEntry] = {}

    def get(self, identity: Path) -> Optional[FileEntry]:
        return self._entries.get(identity)

    def upsert(self, identity: Path, timestamp: float) -> FileEntry:
        """Create the entry, or advance an existing one in place."""
        entry = self._entries.get(identity)
        if entry is None:
            entry = FileEntry(last_write_time=timestamp)
            self._entries[identity] = entry
        else:
            entry.last_write_time = timestamp
        return entry

    def items(self) -> Iterator[Tuple[Path, FileEntry]]:
        return iter(list(self._entries.items()))

    def __contains__(self, identity: object) -> bool:
        return identity in self._entries

    def __iter__(self) -> Iterator[Path]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
