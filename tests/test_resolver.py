import pytest

from lunash.lunash_config import Settings
from lunash.lunash_errors import ResolutionError
from lunash.lunash_resolver import ResolvedScript, find_script, resolve_script, script_filename


def write_script(directory, name, body="return 1\n"):
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / script_filename(name)
    path.write_text(body, encoding="utf-8")
    return path


def test_script_filename_embeds_launcher_id():
    assert script_filename("foo") == "foo.lunash.lua"


def test_cwd_wins_and_later_tiers_are_never_consulted(tmp_path, monkeypatch):
    cwd = tmp_path / "cwd"
    write_script(cwd, "foo")
    monkeypatch.chdir(cwd)

    def boom(*args, **kwargs):
        raise AssertionError("later tiers consulted")

    monkeypatch.setattr("lunash.lunash_resolver.load_settings", boom)
    found = find_script("foo")
    assert found is not None
    assert found.name == "foo.lunash.lua"
    assert found.resolve() == (cwd / "foo.lunash.lua").resolve()


def test_cwd_beats_user_dir_and_search_path(tmp_path, monkeypatch):
    cwd, data, extra = tmp_path / "cwd", tmp_path / "data", tmp_path / "extra"
    write_script(cwd, "foo", "-- local")
    write_script(data / "scripts", "foo", "-- user")
    write_script(extra, "foo", "-- path")
    monkeypatch.chdir(cwd)
    settings = Settings(data_dir=data, script_path=[extra])
    assert resolve_script("foo", settings=settings).source == "-- local"


def test_user_dir_beats_search_path(tmp_path, monkeypatch):
    data, extra = tmp_path / "data", tmp_path / "extra"
    user_copy = write_script(data / "scripts", "foo", "-- user")
    write_script(extra, "foo", "-- path")
    monkeypatch.chdir(tmp_path)
    settings = Settings(data_dir=data, script_path=[extra])
    assert find_script("foo", settings=settings) == user_copy


def test_search_path_first_listed_match_wins(tmp_path, monkeypatch):
    first, second = tmp_path / "one", tmp_path / "two"
    first.mkdir()
    write_script(second, "foo", "-- two")
    monkeypatch.chdir(tmp_path)
    settings = Settings(data_dir=tmp_path / "data", script_path=[first, second])
    assert find_script("foo", settings=settings) == second / "foo.lunash.lua"

    write_script(first, "foo", "-- one")
    assert find_script("foo", settings=settings) == first / "foo.lunash.lua"


def test_search_path_from_environment(tmp_path, monkeypatch):
    extra = tmp_path / "extra"
    path = write_script(extra, "bar")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("LUA_SCRIPT_PATH", f"{tmp_path / 'missing'}::{extra}")
    assert find_script("bar") == path


def test_missing_everywhere_returns_none(tmp_path, monkeypatch, settings):
    monkeypatch.chdir(tmp_path)
    assert find_script("nothing", settings=settings) is None


def test_resolve_missing_raises_resolution_error(tmp_path, monkeypatch, settings):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(ResolutionError) as ei:
        resolve_script("nothing", settings=settings)
    assert ei.value.name == "nothing"
    assert "not found" in str(ei.value)


def test_exact_name_only(tmp_path, monkeypatch, settings):
    write_script(tmp_path, "foobar")
    (tmp_path / "foo.lua").write_text("")
    monkeypatch.chdir(tmp_path)
    assert find_script("foo", settings=settings) is None


def test_directory_with_script_name_is_ignored(tmp_path, monkeypatch, settings):
    (tmp_path / "foo.lunash.lua").mkdir()
    monkeypatch.chdir(tmp_path)
    assert find_script("foo", settings=settings) is None


@pytest.mark.parametrize("name", ["", "a/b", "../foo"])
def test_names_that_look_like_paths_are_rejected(name, settings):
    with pytest.raises(ResolutionError):
        find_script(name, settings=settings)


def test_resolved_script_load_reads_utf8(tmp_path):
    p = tmp_path / "x.lunash.lua"
    p.write_text("print('héllo')", encoding="utf-8")
    script = ResolvedScript.load(p)
    assert script.path == p
    assert script.source == "print('héllo')"
