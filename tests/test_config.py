"""Tests for Settings."""

import pytest

from eventfeed import Settings


class TestSettings:
    """Tests for settings defaults, validation and environment loading."""

    def test_defaults(self) -> None:
        settings = Settings()

        assert settings.page_size == 18
        assert settings.stale_time == "5m"
        assert settings.search_debounce == "300ms"
        assert settings.root_margin == "200px"
        assert settings.threshold == 0.1

    def test_from_env(self) -> None:
        settings = Settings.from_env(
            {
                "EVENTFEED_API_BASE_URL": "https://events.test/api",
                "EVENTFEED_PAGE_SIZE": "24",
                "EVENTFEED_STALE_TIME": "30s",
                "EVENTFEED_THRESHOLD": "0.5",
                "EVENTFEED_REQUEST_TIMEOUT": "none",
                "EVENTFEED_LOG_LEVEL": "",
                "UNRELATED": "x",
            }
        )

        assert settings.api_base_url == "https://events.test/api"
        assert settings.page_size == 24
        assert settings.stale_time == "30s"
        assert settings.threshold == 0.5
        assert settings.request_timeout is None
        assert settings.log_level == "INFO"

    def test_from_env_reads_os_environ(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EVENTFEED_SEARCH_DEBOUNCE", "150ms")
        assert Settings.from_env().search_debounce == "150ms"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"page_size": 0},
            {"page_size": 101},
            {"stale_time": "soon"},
            {"gc_time": "-1s"},
            {"root_margin": "lots"},
            {"threshold": 2.0},
        ],
    )
    def test_invalid_values_rejected(self, overrides: dict[str, object]) -> None:
        with pytest.raises(ValueError):
            Settings(**overrides)  # type: ignore[arg-type]

    def test_invalid_env_value_rejected(self) -> None:
        with pytest.raises(ValueError):
            Settings.from_env({"EVENTFEED_PAGE_SIZE": "many"})
