def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_unknown_route_uses_error_envelope(client):
    r = client.get("/nope")
    assert r.status_code == 404
    assert r.json()["success"] is False


def test_settings_helpers(monkeypatch):
    from core import settings

    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example,")
    assert settings.cors_origins() == ["https://a.example", "https://b.example"]

    monkeypatch.setenv("SOME_INT", "abc")
    assert settings.env_int("SOME_INT", 7) == 7
    monkeypatch.setenv("SOME_INT", " 9 ")
    assert settings.env_int("SOME_INT", 7) == 9
