from forum import server
from forum.core import config


def test_run_serves_app_from_settings(monkeypatch):
    calls = []
    monkeypatch.setattr(server.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.setattr(config.settings, "port", 8123)
    monkeypatch.setattr(config.settings, "app_env", "production")

    server.run()

    [(app, kwargs)] = calls
    assert app == "forum.main:app"
    assert kwargs["port"] == 8123
    assert kwargs["reload"] is False
