import importlib


def test_vars_read_environment(monkeypatch):
    monkeypatch.setenv("RPC_SERVER", "https://rpc.example.com")
    monkeypatch.setenv("HEIGHT_CHECK_INTERVAL_MS", "250")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("PROXY_TIMEOUT", "2.5")
    import accelerator.vars as vars_module

    importlib.reload(vars_module)

    assert vars_module.RPC_SERVER == "https://rpc.example.com"
    assert vars_module.HEIGHT_CHECK_INTERVAL_MS == "250"
    assert vars_module.LOG_LEVEL == "debug"
    assert vars_module.PROXY_TIMEOUT == 2.5

    monkeypatch.undo()
    importlib.reload(vars_module)
