"""Tests for settings validation."""

import pytest
from pydantic import ValidationError

from seatwatch.config import load_settings
from seatwatch.models import AlertResetPolicy, MonitorTarget


class TestRateLimit:

    def test_five_targets_at_five_seconds_is_exactly_the_limit(self, make_settings):
        settings = make_settings(course_ids=[1, 2, 3, 4, 5], poll_period=5)

        assert settings.requests_per_minute == pytest.approx(60.0)

    def test_five_targets_too_fast_is_rejected(self, make_settings):
        with pytest.raises(ValidationError, match="requests/minute"):
            make_settings(course_ids=[1, 2, 3, 4, 5], poll_period=4)

    def test_default_period_allows_many_targets(self, make_settings):
        settings = make_settings(course_ids=list(range(1, 201)))

        assert settings.poll_period == 200.5
        assert settings.requests_per_minute <= 60

    def test_custom_limit(self, make_settings):
        with pytest.raises(ValidationError):
            make_settings(course_ids=[1, 2], poll_period=60, max_requests_per_minute=1)


class TestSchedule:

    def test_defaults(self, make_settings):
        settings = make_settings()

        assert settings.refresh_period == 600
        assert settings.token_lifetime == 3600
        assert settings.alert_reset_policy is AlertResetPolicy.SEATS_GONE

    def test_refresh_must_be_shorter_than_token_lifetime(self, make_settings):
        with pytest.raises(ValidationError, match="token_lifetime"):
            make_settings(refresh_period=3600)

    @pytest.mark.parametrize("field", ["poll_period", "refresh_period", "request_timeout"])
    def test_periods_must_be_positive(self, make_settings, field):
        with pytest.raises(ValidationError):
            make_settings(**{field: 0})


class TestTargets:

    def test_monitor_targets(self, make_settings):
        settings = make_settings(term=2010, course_ids=[11, 22])

        assert settings.monitor_targets == [
            MonitorTarget(term=2010, course_id=11),
            MonitorTarget(term=2010, course_id=22),
        ]

    def test_no_term_means_no_targets(self, make_settings):
        assert make_settings(term=None).monitor_targets == []

    def test_duplicate_course_ids_rejected(self, make_settings):
        with pytest.raises(ValidationError, match="unique"):
            make_settings(course_ids=[5, 5])

    def test_non_positive_course_ids_rejected(self, make_settings):
        with pytest.raises(ValidationError):
            make_settings(course_ids=[0])


class TestFields:

    def test_urls_lose_trailing_slash(self, make_settings):
        settings = make_settings(
            umich_auth_url="https://auth.example.edu/token/",
            umich_api_base_url="https://api.example.edu/SOC/v1/",
        )

        assert settings.umich_auth_url == "https://auth.example.edu/token"
        assert settings.umich_api_base_url == "https://api.example.edu/SOC/v1"

    def test_log_level_normalized(self, make_settings):
        assert make_settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self, make_settings):
        with pytest.raises(ValidationError):
            make_settings(log_level="chatty")

    def test_telegram_enabled_needs_both_values(self, make_settings):
        assert not make_settings(telegram_bot_token="t").telegram_enabled
        assert make_settings(telegram_bot_token="t", telegram_chat_id="c").telegram_enabled


class TestLoadSettings:

    def test_reads_credentials_from_environment(self, monkeypatch):
        monkeypatch.setenv("UMICH_CLIENT_ID", "env-client")
        monkeypatch.setenv("UMICH_CLIENT_SECRET", "env-secret")

        settings = load_settings(term=1770, course_ids=[1], poll_period=None)

        assert settings.umich_client_id == "env-client"
        assert settings.poll_period == 200.5

    def test_missing_credentials_fail(self, monkeypatch):
        monkeypatch.delenv("UMICH_CLIENT_ID", raising=False)
        monkeypatch.delenv("UMICH_CLIENT_SECRET", raising=False)

        with pytest.raises(ValidationError):
            load_settings(term=1770, course_ids=[1])
