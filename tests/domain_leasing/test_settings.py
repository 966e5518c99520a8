"""Unit tests for subdomain pool settings."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from locatio.domain.leasing.settings import SubdomainPoolSettings, get_pool_settings


class TestSubdomainPoolSettings:
    @pytest.mark.unit
    def test_default_values(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            settings = SubdomainPoolSettings()
            assert settings.reservation_ttl_seconds == 300
            assert settings.signup_reservation_ttl_seconds == 600
            assert settings.max_selection_attempts == 3
            assert settings.populate_batch_size == 100
            assert settings.minimum_available == 100
            assert settings.lock_timeout_seconds == 5.0

    @pytest.mark.unit
    def test_ttl_properties(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            settings = SubdomainPoolSettings()
            assert settings.reservation_ttl == timedelta(minutes=5)
            assert settings.signup_reservation_ttl == timedelta(minutes=10)

    @pytest.mark.unit
    def test_from_env(self) -> None:
        env = {
            "SUBDOMAIN_POOL_RESERVATION_TTL_SECONDS": "120",
            "SUBDOMAIN_POOL_MAX_SELECTION_ATTEMPTS": "5",
            "SUBDOMAIN_POOL_MINIMUM_AVAILABLE": "500",
        }
        with patch.dict("os.environ", env, clear=True):
            settings = SubdomainPoolSettings()
            assert settings.reservation_ttl == timedelta(minutes=2)
            assert settings.max_selection_attempts == 5
            assert settings.minimum_available == 500

    @pytest.mark.unit
    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValidationError):
            SubdomainPoolSettings(max_selection_attempts=0)

    @pytest.mark.unit
    def test_rejects_zero_ttl(self) -> None:
        with pytest.raises(ValidationError):
            SubdomainPoolSettings(reservation_ttl_seconds=0)

    @pytest.mark.unit
    def test_get_pool_settings_is_cached(self) -> None:
        get_pool_settings.cache_clear()
        with patch.dict("os.environ", {}, clear=True):
            assert get_pool_settings() is get_pool_settings()
        get_pool_settings.cache_clear()
