"""Tests for the collision-free naming of archive entries"""

from mdbundle.models.asset import AssetKind, AssetStore
from mdbundle.models.dao.naming import resolve_names, suffixed_name


def _store(*names: str) -> AssetStore:
    store = AssetStore(AssetKind.IMAGE)
    for index, name in enumerate(names):
        _ = store.add(name, str(index).encode())
    return store


class TestSuffixedName:
    """Tests for suffix insertion"""

    def test_suffix_goes_before_extension(self):
        assert suffixed_name("photo.png", 2) == "photo-2.png"

    def test_name_without_extension(self):
        assert suffixed_name("LICENSE", 3) == "LICENSE-3"

    def test_only_last_extension_is_kept(self):
        assert suffixed_name("backup.tar.gz", 2) == "backup.tar-2.gz"


class TestResolveNames:
    """Tests for resolve_names"""

    def test_unique_names_are_unchanged(self):
        """Test that names without collisions are kept"""
        store = _store("a.png", "b.png", "c.png")
        assert list(resolve_names(store).values()) == ["a.png", "b.png", "c.png"]

    def test_first_inserted_keeps_plain_name(self):
        """Test that the first asset claiming a name keeps it"""
        store = _store("a.png", "a.png")
        first, second = list(store)

        resolved = resolve_names(store)

        assert resolved[first.asset_id] == "a.png"
        assert resolved[second.asset_id] == "a-2.png"

    def test_suffix_increments(self):
        """Test that later duplicates get increasing suffixes"""
        store = _store("photo.png", "photo.png", "photo.png", "photo.png")
        assert list(resolve_names(store).values()) == [
            "photo.png",
            "photo-2.png",
            "photo-3.png",
            "photo-4.png",
        ]

    def test_suffix_skips_existing_names(self):
        """Test that a generated name never steals another asset's own name"""
        store = _store("a.png", "a.png", "a-2.png")
        first, second, third = list(store)

        resolved = resolve_names(store)

        assert resolved[first.asset_id] == "a.png"
        assert resolved[second.asset_id] == "a-3.png"
        assert resolved[third.asset_id] == "a-2.png"

    def test_resolved_names_are_distinct(self):
        """Test that every resolved name is unique"""
        store = _store("x.gif", "x.gif", "x-2.gif", "x-2.gif", "x.gif", "y")
        resolved = resolve_names(store)
        assert len(set(resolved.values())) == len(store)

    def test_resolution_is_repeatable(self):
        """Test that resolving twice gives the same mapping"""
        store = _store("a.png", "a.png", "b.png", "a.png")
        assert resolve_names(store) == resolve_names(store)

    def test_empty_input(self):
        assert resolve_names([]) == {}
