"""Tests for wren.cli — entrypoint, route listing, and one-off calls."""

import json
import textwrap
import uuid
from pathlib import Path

import pytest

from wren.cli import main
from wren.cli._call import _parse_query
from wren.cli._resolve import resolve_app

APP_SOURCE = textwrap.dedent(
    """
    from wren import App, AppConfig

    app = App(AppConfig(cors=False))

    @app.get("/users/:id")
    def get_user(req, res):
        res.json({"id": req.params["id"], "query": dict(req.query)})

    @app.post("/echo")
    def echo(req, res):
        res.set_status(201).json(req.body)

    @app.get("/boom")
    def boom(req, res):
        raise RuntimeError("boom")

    empty = App()

    def create_app():
        return app

    not_an_app = 42
    """
)


@pytest.fixture
def app_module(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    """Write a throwaway app module and return its import name."""
    name = f"cliapp_{uuid.uuid4().hex}"
    (tmp_path / f"{name}.py").write_text(APP_SOURCE)
    monkeypatch.syspath_prepend(str(tmp_path))
    return name


class TestCLIHelp:
    def test_help_exits_zero(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--help"])
        assert exc_info.value.code == 0

    @pytest.mark.parametrize("command", ["routes", "call"])
    def test_subcommand_help_exits_zero(self, command: str) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([command, "--help"])
        assert exc_info.value.code == 0

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        assert "usage: wren" in capsys.readouterr().out

    def test_call_missing_args(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["call", "app:app"])
        assert exc_info.value.code == 2


class TestResolve:
    def test_default_attribute(self, app_module: str) -> None:
        assert resolve_app(app_module).routes

    def test_factory(self, app_module: str) -> None:
        assert resolve_app(f"{app_module}:create_app").routes

    def test_not_an_app(self, app_module: str) -> None:
        with pytest.raises(TypeError, match="not a wren.App"):
            resolve_app(f"{app_module}:not_an_app")

    def test_missing_attribute(self, app_module: str) -> None:
        with pytest.raises(AttributeError):
            resolve_app(f"{app_module}:nope")


class TestRoutesCommand:
    def test_lists_routes(self, app_module: str, capsys: pytest.CaptureFixture[str]) -> None:
        main(["routes", app_module])
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].split() == ["METHOD", "PATH", "HANDLER"]
        assert lines[2].split() == ["GET", "/users/:id", "get_user"]
        assert lines[3].split() == ["POST", "/echo", "echo"]

    def test_no_routes(self, app_module: str, capsys: pytest.CaptureFixture[str]) -> None:
        main(["routes", f"{app_module}:empty"])
        assert "No routes registered." in capsys.readouterr().out

    def test_bad_import(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["routes", "wren_no_such_module:app"])
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err


class TestCallCommand:
    def test_get_with_query(self, app_module: str, capsys: pytest.CaptureFixture[str]) -> None:
        main(["call", app_module, "get", "/users/7", "--query", "a=1", "--query", "b="])
        assert json.loads(capsys.readouterr().out) == {
            "status": 200,
            "headers": {"Content-Type": "application/json"},
            "body": {"id": "7", "query": {"a": "1", "b": ""}},
        }

    def test_post_with_body(self, app_module: str, capsys: pytest.CaptureFixture[str]) -> None:
        main(["call", app_module, "POST", "/echo", "--body", '{"n": 1}'])
        output = json.loads(capsys.readouterr().out)
        assert output["status"] == 201
        assert output["body"] == {"n": 1}

    def test_not_found_exits_zero(
        self, app_module: str, capsys: pytest.CaptureFixture[str]
    ) -> None:
        main(["call", app_module, "GET", "/missing"])
        assert json.loads(capsys.readouterr().out)["status"] == 404

    def test_server_error_exits_one(
        self, app_module: str, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["call", app_module, "GET", "/boom"])
        assert exc_info.value.code == 1
        assert json.loads(capsys.readouterr().out)["status"] == 500

    def test_bad_body(self, app_module: str, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["call", app_module, "POST", "/echo", "--body", "{nope"])
        assert exc_info.value.code == 2
        assert "Error:" in capsys.readouterr().err


class TestParseQuery:
    def test_pairs(self) -> None:
        assert _parse_query(["a=1", "b=x=y"]) == {"a": "1", "b": "x=y"}

    @pytest.mark.parametrize("pair", ["novalue", "=1"])
    def test_invalid(self, pair: str) -> None:
        with pytest.raises(ValueError, match="key=value"):
            _parse_query([pair])
