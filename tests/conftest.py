import pytest

from lunash.lunash_config import Settings


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path_factory):
    """Keep the user's real settings, data dir and search path out of every test."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("LUNASH_DATA_DIR", str(home / "data"))
    monkeypatch.setenv("LUNASH_CONFIG", str(home / "settings.yaml"))
    monkeypatch.delenv("LUA_SCRIPT_PATH", raising=False)
    monkeypatch.delenv("LUNASH_LOG_LEVEL", raising=False)
    return home


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path / "data")
