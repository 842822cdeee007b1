from meteokit.config import REQUEST_TIMEOUT, MeteokitSettings, get_settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("METEOKIT_BASE_URL", raising=False)
    monkeypatch.delenv("METEOKIT_USER_AGENT", raising=False)
    settings = MeteokitSettings(_env_file=None)
    assert settings.base_url is None
    assert settings.user_agent == "meteokit/0.1.0"
    assert REQUEST_TIMEOUT == 60.0


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("METEOKIT_BASE_URL", "https://env.example.com")
    monkeypatch.setenv("METEOKIT_LOG_LEVEL", "DEBUG")
    settings = MeteokitSettings(_env_file=None)
    assert settings.base_url == "https://env.example.com"
    assert settings.log_level == "DEBUG"


def test_get_settings_is_cached():
    get_settings.cache_clear()
    assert get_settings() is get_settings()
