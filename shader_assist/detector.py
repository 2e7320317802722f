"""
Change detection for the shader source directory.

Each pass lists the eligible shader files, compares their modification
times against the FileRegistry and classifies every file as:
- SKIP: nothing to do
- COMPILE_NEW: first time this file is seen
- COMPILE_CHANGED: modified since the last compile (or forced)

Timestamp deltas are compared in whole seconds and must exceed one
second, so a single save is not picked up twice by polls landing on
either side of a second boundary.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional

from .config import ShaderAssistConfig
from .registry import FileRegistry

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 1


class Action(str, Enum):
    """What to do with a scanned file."""
    SKIP = "skip"
    COMPILE_NEW = "compile_new"
    COMPILE_CHANGED = "compile_changed"

    @property
    def compiles(self) -> bool:
        return self is not Action.SKIP


@dataclass(frozen=True)
class Decision:
    """Classification of one eligible file in one pass."""
    path: Path
    action: Action
    mtime: float


def list_eligible(directory: str | Path, extensions: Iterable[str]) -> List[Path]:
    """
    List regular files in directory whose suffix is one of extensions.

    Not recursive. An unreadable or missing directory yields an empty
    list so the watcher survives transient filesystem errors.
    """
    valid = set(extensions)
    try:
        entries = sorted(Path(directory).iterdir())
    except OSError as e:
        logger.warning(f"Cannot list shader directory {directory}: {e}")
        return []

    out: List[Path] = []
    for entry in entries:
        if entry.suffix not in valid:
            continue
        try:
            if not entry.is_file():
                continue
        except OSError:
            continue
        out.append(entry.absolute())
    return out


class ChangeDetector:
    """
    Classifies eligible files against the registry and commits the
    registry updates that go with each decision.

    Example:
        >>> detector = ChangeDetector(config)
        >>> registry = FileRegistry()
        >>> decisions = detector.scan(registry, first_scan=True)
    """

    def __init__(self, config: ShaderAssistConfig):
        self.config = config

    def classify(
        self,
        path: Path,
        mtime: float,
        registry: FileRegistry,
        *,
        first_scan: bool = False,
        force: bool = False,
    ) -> Action:
        """
        Decide what to do with one file. Does not touch the registry.

        Args:
            path: File identity
            mtime: Current on-disk modification time
            registry: Known file state
            first_scan: True during the first pass of the process
            force: True while a forced recompile is active
        """
        entry = registry.get(path)
        if entry is None:
            if first_scan and not self.config.compile_on_startup:
                return Action.SKIP
            return Action.COMPILE_NEW

        delta = int(mtime) - int(entry.last_write_time)
        if delta > DEBOUNCE_SECONDS or force:
            return Action.COMPILE_CHANGED
        return Action.SKIP

    def scan(
        self,
        registry: FileRegistry,
        *,
        first_scan: bool = False,
        force: bool = False,
        paths: Optional[List[Path]] = None,
    ) -> List[Decision]:
        """
        Classify every eligible file and update the registry.

        Unseen files are always registered, even when their compile is
        suppressed on startup. Compile decisions advance the entry to the
        current mtime before dispatch, whatever the compile outcome.

        Returns:
            One Decision per eligible file, in listing order
        """
        if paths is None:
            paths = list_eligible(self.config.shader_source_path, self.config.stage_extensions)

        decisions: List[Decision] = []
        for path in paths:
            try:
                mtime = path.stat().st_mtime
            except FileNotFoundError:
                # Deleted between listing and stat
                continue
            except OSError as e:
                logger.warning(f"Cannot stat {path.name}: {e}")
                continue

            known = path in registry
            action = self.classify(
                path, mtime, registry, first_scan=first_scan, force=force
            )
            if action.compiles or not known:
                registry.upsert(path, mtime)
            decisions.append(Decision(path=path, action=action, mtime=mtime))

        return decisions
