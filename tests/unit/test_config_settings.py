"""Unit tests for application settings configuration."""

from pathlib import Path

from dualstore.config import Settings


def test_settings_uses_project_env_file_independent_of_cwd():
    """Settings should always include the project-root .env as an env source."""
    env_files = Settings.model_config.get("env_file")
    assert env_files is not None

    normalized = {str(Path(item)) for item in env_files}
    expected_project_env = str(Path(__file__).resolve().parents[2] / ".env")

    assert expected_project_env in normalized
    assert str(Path(".env")) in normalized


def test_defaults_match_documented_limits():
    settings = Settings(_env_file=None)
    assert settings.port == 3000
    assert settings.default_page_size == 10
    assert settings.max_page_size == 100
    assert settings.search_limit == 50
    assert settings.mongodb_max_pool_size == 10
    assert settings.pg_pool_size == 10


def test_test_environment_uses_test_mongodb_uri(monkeypatch):
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("MONGODB_TEST_URI", "mongodb://db:27017/loadtest_db_test")
    settings = Settings(_env_file=None)
    assert settings.effective_mongodb_uri == "mongodb://db:27017/loadtest_db_test"
    assert not settings.is_production


def test_max_page_size_never_below_default(monkeypatch):
    monkeypatch.setenv("DEFAULT_PAGE_SIZE", "50")
    monkeypatch.setenv("MAX_PAGE_SIZE", "20")
    settings = Settings(_env_file=None)
    assert settings.max_page_size == 50
