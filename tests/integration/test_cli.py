"""Tests for the dispatchkit command line."""

from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from dispatchkit._version import __version__
from dispatchkit.api.asgi import DispatchASGIApp
from dispatchkit.cli.loader import TargetError, load_dispatcher
from dispatchkit.cli.main import app
from dispatchkit.services.dispatcher import Dispatcher


PROJECT_ROOT = Path(__file__).parent.parent.parent
TARGET = "tests.helpers.items_app:create_dispatcher"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def invoke(runner: CliRunner, *args: str):
    return runner.invoke(app, list(args), catch_exceptions=False)


@pytest.mark.integration
class TestLoader:
    def test_factory_target(self) -> None:
        dispatcher = load_dispatcher(TARGET, PROJECT_ROOT)
        assert isinstance(dispatcher, Dispatcher)

    @pytest.mark.parametrize(
        ("target", "message"),
        [
            ("tests.helpers.items_app", "module:attribute"),
            ("tests.helpers.no_such_module:app", "Cannot import"),
            ("tests.helpers.items_app:missing", "has no attribute"),
            ("tests.helpers.items_app:ROUTES", "expected a Dispatcher"),
        ],
    )
    def test_bad_targets(self, target: str, message: str) -> None:
        with pytest.raises(TargetError, match=message):
            load_dispatcher(target, PROJECT_ROOT)


@pytest.mark.integration
class TestCommands:
    def test_version(self, runner: CliRunner) -> None:
        result = invoke(runner, "--version")
        assert result.exit_code == 0
        assert f"dispatchkit {__version__}" in result.output

    def test_routes(self, runner: CliRunner) -> None:
        result = invoke(runner, "routes", TARGET, "--app-dir", str(PROJECT_ROOT))
        assert result.exit_code == 0
        assert "/items/recent" in result.output
        assert "/files/{rest:path}" in result.output
        assert "health" in result.output

    def test_check(self, runner: CliRunner) -> None:
        result = invoke(runner, "check", TARGET, "--app-dir", str(PROJECT_ROOT))
        assert result.exit_code == 0
        assert "OK" in result.output
        assert "9 routes" in result.output

    def test_check_bad_target(self, runner: CliRunner) -> None:
        result = invoke(runner, "check", "nothing-here")
        assert result.exit_code == 2

    def test_invalid_config(self, runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "bad.toml"
        config.write_text("[server\n", encoding="utf-8")
        result = invoke(runner, "--config", str(config), "check", TARGET)
        assert result.exit_code == 1

    def test_serve_uses_settings(self, runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "engine.toml"
        config.write_text('[server]\nhost = "0.0.0.0"\nport = 8123\n', encoding="utf-8")

        with patch("dispatchkit.cli.main.uvicorn.run") as mock_run:
            result = invoke(
                runner,
                "--config",
                str(config),
                "serve",
                TARGET,
                "--app-dir",
                str(PROJECT_ROOT),
                "--port",
                "9000",
            )

        assert result.exit_code == 0
        mock_run.assert_called_once()
        (asgi_app,), kwargs = mock_run.call_args
        assert isinstance(asgi_app, DispatchASGIApp)
        assert kwargs["host"] == "0.0.0.0"
        assert kwargs["port"] == 9000
