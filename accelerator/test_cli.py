import pytest

from accelerator import __version__
from accelerator import cli


def test_version_command(capsys):
    assert cli.main(["version"]) == 0
    assert capsys.readouterr().out.strip() == f"Cosmos Accelerator v{__version__}"


def test_command_is_required():
    with pytest.raises(SystemExit):
        cli.main([])


@pytest.mark.parametrize(
    "argv",
    [
        ["start", "--port", "not-a-port"],
        ["start", "--height-check-interval", "-5"],
        ["start", "--log-level", "loud"],
    ],
)
def test_invalid_start_options_exit_with_error(argv, monkeypatch):
    monkeypatch.setattr(cli.uvicorn, "run", lambda *args, **kwargs: pytest.fail())
    assert cli.main(argv) == 1


def test_start_runs_uvicorn_with_options(monkeypatch):
    calls = []
    monkeypatch.setattr(
        cli.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs))
    )

    assert cli.main(["start", "-p", "6000", "-s", "node:26657", "-i", "500", "-l", "DEBUG"]) == 0

    app, kwargs = calls[0]
    assert kwargs == {"host": "0.0.0.0", "port": 6000, "log_level": "debug"}
    assert app.state.options.server == "http://node:26657"
    assert app.state.options.height_check_interval_ms == 500


def test_startup_failure_is_reported_as_exit_code(monkeypatch):
    def failing_run(app, **kwargs):
        raise SystemExit(3)

    monkeypatch.setattr(cli.uvicorn, "run", failing_run)

    assert cli.main(["start"]) == 3
