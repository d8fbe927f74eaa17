import logging

from photodesk.config import ClientSettings
from photodesk.logging_setup import setup_logging


def test_defaults_without_environment(monkeypatch):
    for name in ("PHOTODESK_API_URL", "PHOTODESK_PAGE_SIZE", "PHOTODESK_MAX_UPLOAD_SIZE", "SUPABASE_DISABLED"):
        monkeypatch.delenv(name, raising=False)
    settings = ClientSettings.from_env()
    assert settings.api_base_url == "http://localhost:3000/api"
    assert settings.page_size == 20
    assert settings.max_upload_size == 10 * 1024 * 1024
    assert settings.supabase_disabled is False


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PHOTODESK_API_URL", "https://store.example.com/api")
    monkeypatch.setenv("PHOTODESK_APP_ORIGIN", "https://app.example.com/")
    monkeypatch.setenv("PHOTODESK_PAGE_SIZE", "50")
    monkeypatch.setenv("PHOTODESK_REQUEST_TIMEOUT", "5.5")
    monkeypatch.setenv("PHOTODESK_LOG_LEVEL", "debug")
    monkeypatch.setenv("SUPABASE_DISABLED", "1")
    settings = ClientSettings.from_env()
    assert settings.api_base_url == "https://store.example.com/api"
    assert settings.app_origin == "https://app.example.com"
    assert settings.page_size == 50
    assert settings.request_timeout == 5.5
    assert settings.log_level == "DEBUG"
    assert settings.supabase_disabled is True


def test_setup_logging_writes_file(tmp_path):
    log_file = tmp_path / "logs" / "client.log"
    setup_logging("DEBUG", console=False, log_file=log_file)
    logging.getLogger("photodesk.test").debug("hello")
    logging.getLogger("httpx").info("quiet")
    for handler in logging.getLogger().handlers:
        handler.flush()
    content = log_file.read_text(encoding="utf-8")
    assert "photodesk.test - DEBUG - hello" in content
    assert "quiet" not in content
    setup_logging(console=False)


def test_bootstrap_applies_log_level():
    from photodesk.main import bootstrap

    workspace = bootstrap(ClientSettings(log_level="WARNING", supabase_disabled=True))
    assert logging.getLogger().level == logging.WARNING
    assert workspace.collection.images == ()
    setup_logging(console=False)
