"""
Tests for the file state registry.
"""
from pathlib import Path

from shader_assist.registry import FileEntry, FileRegistry


class TestFileRegistry:
    """Test registry lookup and update."""

    def test_get_missing_returns_none(self):
        registry = FileRegistry()
        assert registry.get(Path("/shaders/a.vert")) is None
        assert len(registry) == 0

    def test_upsert_creates_entry(self):
        registry = FileRegistry()
        entry = registry.upsert(Path("/shaders/a.vert"), 100.0)

        assert isinstance(entry, FileEntry)
        assert entry.last_write_time == 100.0
        assert Path("/shaders/a.vert") in registry
        assert len(registry) == 1

    def test_upsert_mutates_in_place(self):
        """Advancing a timestamp should keep the same entry object."""
        registry = FileRegistry()
        first = registry.upsert(Path("/shaders/a.vert"), 100.0)
        second = registry.upsert(Path("/shaders/a.vert"), 105.0)

        assert first is second
        assert registry.get(Path("/shaders/a.vert")).last_write_time == 105.0
        assert len(registry) == 1

    def test_iteration_for_diagnostics(self):
        registry = FileRegistry()
        registry.upsert(Path("/shaders/a.vert"), 1.0)
        registry.upsert(Path("/shaders/b.frag"), 2.0)

        assert set(registry) == {Path("/shaders/a.vert"), Path("/shaders/b.frag")}
        times = {p.name: e.last_write_time for p, e in registry.items()}
        assert times == {"a.vert": 1.0, "b.frag": 2.0}
