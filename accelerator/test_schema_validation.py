import pytest

from accelerator.schema_validation import is_json_rpc_response


@pytest.mark.parametrize(
    "value",
    [
        {"jsonrpc": "2.0", "id": 1, "result": {}},
        {"jsonrpc": "2.0", "id": 1.5, "result": None},
        {"jsonrpc": "2.0", "id": 0, "result": [], "extra": True},
    ],
)
def test_json_rpc_response_accepted(value):
    assert is_json_rpc_response(value) is True


@pytest.mark.parametrize(
    "value",
    [
        {"jsonrpc": "2.0", "id": 1},
        {"jsonrpc": "2.0", "result": {}},
        {"id": 1, "result": {}},
        {"jsonrpc": 2, "id": 1, "result": {}},
        {"jsonrpc": "2.0", "id": "1", "result": {}},
        {"jsonrpc": "2.0", "id": True, "result": {}},
        {"jsonrpc": "2.0", "id": 1, "error": {"code": -32603}},
        [],
        "ok",
    ],
)
def test_json_rpc_response_rejected(value):
    assert is_json_rpc_response(value) is False
