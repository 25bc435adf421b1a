from pathlib import Path

import pytest
from typer.testing import CliRunner

from kvstore_cli.cli import app

runner = CliRunner()


@pytest.fixture
def db_args(tmp_path: Path) -> list[str]:
    return ["--path", str(tmp_path / "kvstore.db")]


def test_set_get_and_exists(db_args: list[str]) -> None:
    result = runner.invoke(app, [*db_args, "set", "foo", "bar"])
    assert result.exit_code == 0
    assert result.stdout == ""

    result = runner.invoke(app, [*db_args, "set", "foo", "baz"])
    assert result.exit_code == 0
    assert result.stdout == "bar\n"

    result = runner.invoke(app, [*db_args, "get", "foo"])
    assert result.exit_code == 0
    assert result.stdout == "baz\n"

    result = runner.invoke(app, [*db_args, "exists", "foo"])
    assert result.exit_code == 0
    assert result.stdout == "1\n"


def test_missing_key_exit_codes(db_args: list[str]) -> None:
    result = runner.invoke(app, [*db_args, "get", "qux"])
    assert result.exit_code == 1
    assert result.stdout == ""

    result = runner.invoke(app, [*db_args, "exists", "qux"])
    assert result.exit_code == 1
    assert result.stdout == "0\n"

    result = runner.invoke(app, [*db_args, "exists", "-q", "qux"])
    assert result.exit_code == 1
    assert result.stdout == ""


def test_list_keys(db_args: list[str]) -> None:
    result = runner.invoke(app, [*db_args, "list-keys"])
    assert result.exit_code == 0
    assert result.stdout == ""

    runner.invoke(app, [*db_args, "set", "b", "2"])
    runner.invoke(app, [*db_args, "set", "a", "1"])
    result = runner.invoke(app, [*db_args, "list-keys"])
    assert result.exit_code == 0
    assert result.stdout.splitlines() == ["a", "b"]


def test_encodings(db_args: list[str]) -> None:
    result = runner.invoke(app, [*db_args, "set", "-e", "h", "bin", "00ff"])
    assert result.exit_code == 0

    result = runner.invoke(app, [*db_args, "get", "-E", "b", "bin"])
    assert result.stdout == "AP8=\n"

    result = runner.invoke(app, [*db_args, "get", "bin"])
    assert result.stdout_bytes == b"\x00\xff\n"

    runner.invoke(app, [*db_args, "set", "-e", "j", "doc", '{"a": 1}'])
    result = runner.invoke(app, [*db_args, "get", "doc"])
    assert result.stdout == '{"a": 1}\n'


def test_failure_maps_status_to_exit_code(db_args: list[str]) -> None:
    result = runner.invoke(app, [*db_args, "set", "-e", "h", "foo", "zz"])
    assert result.exit_code == 100
    assert "ERROR 400" in result.output
    assert "Invalid digit 'z'" in result.output

    runner.invoke(app, [*db_args, "set", "-e", "j", "doc", "[1]"])
    result = runner.invoke(app, [*db_args, "get", "-E", "h", "doc"])
    assert result.exit_code == 112


def test_config_file_supplies_path(tmp_path: Path) -> None:
    db_path = tmp_path / "from-config.db"
    config_path = tmp_path / "kvstore.yaml"
    config_path.write_text(f"path: {db_path}\n")

    result = runner.invoke(app, ["--config", str(config_path), "set", "foo", "bar"])
    assert result.exit_code == 0
    assert db_path.exists()


def test_missing_config_file(tmp_path: Path) -> None:
    result = runner.invoke(app, ["--config", str(tmp_path / "nope.yaml"), "list-keys"])
    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_invalid_log_level(db_args: list[str]) -> None:
    result = runner.invoke(app, [*db_args, "--log-level", "chatty", "list-keys"])
    assert result.exit_code == 1
    assert "Invalid config" in result.output
