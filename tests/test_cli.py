import sys

import pytest
from click.testing import CliRunner

from lunash import __version__
from lunash.lunash_cli import cli


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    cwd = tmp_path / "cwd"
    cwd.mkdir()
    monkeypatch.chdir(cwd)
    return tmp_path


def invoke(*args):
    return CliRunner().invoke(cli, list(args), obj={})


def test_run_script_found_only_on_search_path(workdir, monkeypatch):
    scripts = workdir / "env-scripts"
    scripts.mkdir()
    (scripts / "foo.lunash.lua").write_text(
        'local name = fs.basename("/a/b.txt")\n'
        'assert(name == "b.txt")\n'
        'print(name)\n',
        encoding="utf-8",
    )
    monkeypatch.setenv("LUA_SCRIPT_PATH", f"{workdir / 'nowhere'}:{scripts}")
    monkeypatch.setattr(sys, "argv", ["lunash", "run", "foo"])

    result = invoke("run", "foo")
    assert result.exit_code == 0, result.output
    assert "b.txt" in result.output


def test_script_sees_process_arguments(workdir, monkeypatch):
    (workdir / "cwd" / "args.lunash.lua").write_text("print(arg[2], arg[3], #arg)\n")
    monkeypatch.setattr(sys, "argv", ["lunash", "run", "args", "--flag"])
    result = invoke("run", "args", "--flag")
    assert result.exit_code == 0, result.output
    assert "args\t--flag\t3" in result.output


def test_missing_script_exits_non_zero(workdir):
    result = invoke("run", "ghost")
    assert result.exit_code == 1
    assert "ResolutionError" in result.output
    assert "ghost" in result.output


def test_compile_error_exits_non_zero(workdir):
    (workdir / "cwd" / "bad.lunash.lua").write_text("local = 1\n")
    result = invoke("run", "bad")
    assert result.exit_code == 1
    assert "CompileError" in result.output
    assert "bad.lunash.lua" in result.output


def test_runtime_fault_exits_non_zero(workdir):
    (workdir / "cwd" / "boom.lunash.lua").write_text('error("kaboom")\n')
    result = invoke("run", "boom")
    assert result.exit_code == 1
    assert "RuntimeFault" in result.output
    assert "kaboom" in result.output


def test_broken_settings_file_is_setup_error(workdir, isolated_env):
    (isolated_env / "settings.yaml").write_text("script_path: [unclosed\n")
    result = invoke("run", "anything")
    assert result.exit_code == 1
    assert "SetupError" in result.output


def test_run_requires_a_name():
    result = invoke("run")
    assert result.exit_code == 2


def test_version():
    result = invoke("--version")
    assert result.exit_code == 0
    assert __version__ in result.output
