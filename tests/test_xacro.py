"""Tests for xacro expansion into the cache directory."""

from pathlib import Path

import pytest

from common.interfaces import CommandResult
from conftest import FakeRunner
from viz.xacro import XacroBridge, XacroConversionError, create_parent_dir, is_xacro


def test_is_xacro():
    assert is_xacro("robot.xacro")
    assert is_xacro(Path("/a/robot.urdf.xacro"))
    assert not is_xacro("robot.urdf")
    assert not is_xacro("robot")


def test_cache_path_mirrors_source_and_swaps_extension(tmp_path):
    bridge = XacroBridge(cache_dir=tmp_path / "cache", runner=FakeRunner())
    source = Path("/home/user/robots/arm.xacro")
    assert bridge.cache_path_for(source) == tmp_path / "cache" / "home" / "user" / "robots" / "arm.urdf"


def test_cache_path_for_urdf_xacro(tmp_path):
    bridge = XacroBridge(cache_dir=tmp_path / "cache", runner=FakeRunner())
    target = bridge.cache_path_for("/home/user/arm.urdf.xacro")
    assert target.name == "arm.urdf.urdf"
    assert target.parent == tmp_path / "cache" / "home" / "user"


def test_sibling_xacro_files_get_distinct_cache_paths(tmp_path):
    bridge = XacroBridge(cache_dir=tmp_path / "cache", runner=FakeRunner())
    plain = bridge.cache_path_for("/home/user/arm.xacro")
    double = bridge.cache_path_for("/home/user/arm.urdf.xacro")
    assert plain != double
    assert plain.parent == double.parent


def test_convert_creates_parent_before_running_tool(tmp_path, capsys):
    target = tmp_path / "cache" / "nested" / "robot.urdf"
    seen_parent: list[bool] = []

    def handler(args):
        seen_parent.append(target.parent.is_dir())
        return CommandResult(0, "", "")

    runner = FakeRunner(handler)
    bridge = XacroBridge(cache_dir=tmp_path / "cache", runner=runner, command=("xacro",))
    assert bridge.convert(tmp_path / "robot.xacro", target) == target

    assert seen_parent == [True]
    assert runner.calls == [["xacro", str(tmp_path / "robot.xacro"), "-o", str(target)]]
    assert "creating dir" in capsys.readouterr().out


def test_convert_failure_logs_stderr_and_raises(tmp_path, capsys):
    runner = FakeRunner(lambda args: CommandResult(2, "", "No such file: robot.xacro"))
    bridge = XacroBridge(cache_dir=tmp_path, runner=runner)
    with pytest.raises(XacroConversionError, match="failed to convert xacro"):
        bridge.convert(tmp_path / "robot.xacro", tmp_path / "robot.urdf")
    assert "No such file: robot.xacro" in capsys.readouterr().out


def test_missing_xacro_tool_is_fatal(tmp_path):
    def handler(args):
        raise FileNotFoundError(args[0])

    bridge = XacroBridge(cache_dir=tmp_path, runner=FakeRunner(handler))
    with pytest.raises(SystemExit):
        bridge.convert(tmp_path / "robot.xacro", tmp_path / "robot.urdf")


def test_convert_if_needed_passes_plain_urdf_through(tmp_path):
    runner = FakeRunner()
    bridge = XacroBridge(cache_dir=tmp_path, runner=runner)
    assert bridge.convert_if_needed("/data/robot.urdf") == Path("/data/robot.urdf")
    assert runner.calls == []


def test_convert_if_needed_routes_xacro_to_cache(tmp_path):
    source = tmp_path / "src" / "robot.urdf.xacro"
    cache = tmp_path / "cache"
    runner = FakeRunner()
    bridge = XacroBridge(cache_dir=cache, runner=runner)

    result = bridge.convert_if_needed(source)

    assert result == bridge.cache_path_for(source)
    assert str(result).startswith(str(cache))
    assert result.suffix == ".urdf"
    assert result.parent.is_dir()
    assert runner.calls[0][-2:] == ["-o", str(result)]


def test_create_parent_dir_is_quiet_when_present(tmp_path, capsys):
    create_parent_dir(tmp_path / "file.urdf")
    assert capsys.readouterr().out == ""
