import pytest
from pydantic import ValidationError

from job_ingest.config import SOURCE_KEYS, Settings
from job_ingest.errors import ConfigurationError
from job_ingest.sources.remotive import DEFAULT_RSS_FEEDS


def test_defaults_from_empty_environment():
    settings = Settings.from_env({})

    assert settings.sources == SOURCE_KEYS
    assert settings.batch_size == 500
    assert settings.remotive_rss_feeds == DEFAULT_RSS_FEEDS
    assert settings.skip_invalid_items is False
    assert settings.supabase_url is None


def test_reads_overrides():
    settings = Settings.from_env(
        {
            "SUPABASE_URL": " https://proj.supabase.co ",
            "SUPABASE_SERVICE_ROLE_KEY": "secret",
            "REMOTIVE_RSS_FEEDS": "https://a.test/feed, ,https://b.test/feed,https://a.test/feed",
            "INGEST_SOURCES": "Remotive, arbeitnow",
            "INGEST_BATCH_SIZE": "100",
            "INGEST_SKIP_INVALID": "yes",
            "LOG_LEVEL": "debug",
        }
    )

    assert settings.supabase_url == "https://proj.supabase.co"
    assert settings.remotive_rss_feeds == ("https://a.test/feed", "https://b.test/feed")
    assert settings.sources == ("remotive", "arbeitnow")
    assert settings.batch_size == 100
    assert settings.skip_invalid_items is True
    assert settings.log_level == "DEBUG"
    assert settings.require_store_credentials() == ("https://proj.supabase.co", "secret")


def test_blank_feed_list_falls_back_to_defaults():
    assert Settings.from_env({"REMOTIVE_RSS_FEEDS": " , "}).remotive_rss_feeds == DEFAULT_RSS_FEEDS


@pytest.mark.parametrize(
    "env",
    [
        {"INGEST_BATCH_SIZE": "lots"},
        {"INGEST_BATCH_SIZE": "0"},
        {"INGEST_HTTP_TIMEOUT": "-1"},
        {"INGEST_SKIP_INVALID": "maybe"},
        {"INGEST_SOURCES": "remotive,indeed"},
    ],
)
def test_invalid_values_raise(env):
    with pytest.raises(ConfigurationError):
        Settings.from_env(env)


def test_missing_credentials_are_named():
    with pytest.raises(ConfigurationError) as excinfo:
        Settings.from_env({"SUPABASE_URL": "https://proj.supabase.co"}).require_store_credentials()
    assert str(excinfo.value).endswith(": SUPABASE_SERVICE_ROLE_KEY")


def test_settings_are_immutable():
    settings = Settings()
    with pytest.raises(ValidationError):
        settings.batch_size = 1
