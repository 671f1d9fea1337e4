import pytest
from pydantic import ValidationError

from accelerator.models import ServerOptions


def _options(**overrides):
    values = {"server": "localhost:26657", "port": 5384, "height_check_interval_ms": 1000}
    values.update(overrides)
    return ServerOptions(**values)


def test_server_without_scheme_defaults_to_http():
    assert _options().server == "http://localhost:26657"


def test_server_with_scheme_is_kept_without_trailing_slash():
    assert _options(server="https://rpc.example.com/").server == "https://rpc.example.com"


def test_numeric_strings_are_accepted():
    options = _options(port="6000", height_check_interval_ms="250")
    assert options.port == 6000
    assert options.height_check_interval_ms == 250


@pytest.mark.parametrize(
    "overrides",
    [
        {"port": "abc"},
        {"port": 0},
        {"port": 70000},
        {"height_check_interval_ms": 0},
        {"height_check_interval_ms": "soon"},
        {"server": "   "},
        {"proxy_timeout": 0},
    ],
)
def test_invalid_options_are_rejected(overrides):
    with pytest.raises(ValidationError):
        _options(**overrides)
