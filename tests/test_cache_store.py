"""
Cache Store Tests
=================
"""

from statusbar.core.cache_store import CachedValue, SidecarCache, default_cache_dir


class TestSidecarCache:
    """Two-line cache file format."""

    def test_missing_file_means_never_synced(self, tmp_path):
        value = SidecarCache(tmp_path / 'absent').load()

        assert value == CachedValue('', 0)
        assert not value.synced

    def test_file_layout(self, tmp_path):
        """Line 1 is the fragment, line 2 the unix timestamp."""
        cache = SidecarCache(tmp_path / 'sub' / 'weather')

        assert cache.store(CachedValue("^c#ffd700^ 21.0°C", 1700000000))
        assert cache.path.read_text(encoding='utf-8') == "^c#ffd700^ 21.0°C\n1700000000\n"
        assert cache.load() == CachedValue("^c#ffd700^ 21.0°C", 1700000000)

    def test_store_leaves_no_temp_files(self, tmp_path):
        cache = SidecarCache(tmp_path / 'weather')
        cache.store(CachedValue("a", 1))
        cache.store(CachedValue("b", 2))

        assert [p.name for p in tmp_path.iterdir()] == ['weather']

    def test_bad_timestamp_ignored(self, tmp_path):
        path = tmp_path / 'weather'
        path.write_text("W\nnot-a-number\n")

        assert SidecarCache(path).load() == CachedValue()

    def test_truncated_file_ignored(self, tmp_path):
        path = tmp_path / 'weather'
        path.write_text("only one line")

        assert SidecarCache(path).load() == CachedValue()

    def test_unwritable_location_reports_failure(self, tmp_path):
        blocker = tmp_path / 'file'
        blocker.write_text("")

        assert SidecarCache(blocker / 'weather').store(CachedValue("x", 1)) is False

    def test_age(self):
        assert CachedValue("x", 1000).age(1100) == 100


class TestDefaultCacheDir:

    def test_uses_xdg_cache_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv('XDG_CACHE_HOME', str(tmp_path))

        assert default_cache_dir() == tmp_path / 'statusbar'

    def test_falls_back_to_home(self, monkeypatch, tmp_path):
        monkeypatch.delenv('XDG_CACHE_HOME', raising=False)
        monkeypatch.setenv('HOME', str(tmp_path))

        assert default_cache_dir() == tmp_path / '.cache' / 'statusbar'
