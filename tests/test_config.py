"""Tests for engine configuration management."""

import logging
import os
import tempfile
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from fi_engine import configure_logging
from fi_engine.config import (
    EngineSettings,
    get_global_settings,
    get_settings,
    reset_global_settings,
)


class TestEngineSettings:
    """Test cases for EngineSettings class."""

    def test_defaults(self):
        """Test default horizons and assumptions."""
        with patch.dict(os.environ, {}, clear=True):
            settings = EngineSettings(_env_file=None)

            assert settings.projection_years == 61
            assert settings.monthly_projection_months == 120
            assert settings.coast_search_horizon == 100
            assert settings.retirement_age == 65
            assert settings.default_years_to_retirement == 30
            assert settings.max_workers == 1
            assert settings.log_level == "INFO"

    def test_settings_loads_from_env_file(self):
        """Test that settings can load from a .env file."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".env", delete=False) as f:
            f.write("FI_PROJECTION_YEARS=31\n")
            f.write("FI_RETIREMENT_AGE=55\n")
            f.write("FI_LOG_LEVEL=DEBUG\n")
            temp_env_file = f.name

        try:
            with patch.dict(os.environ, {}, clear=True):
                settings = get_settings(env_file=temp_env_file)

                assert settings.projection_years == 31
                assert settings.retirement_age == 55
                assert settings.log_level == "DEBUG"
        finally:
            os.unlink(temp_env_file)

    def test_environment_overrides(self):
        """Test FI_ prefixed environment variables."""
        with patch.dict(
            os.environ, {"FI_MAX_WORKERS": "4", "FI_COAST_SEARCH_HORIZON": "50"}
        ):
            settings = EngineSettings(_env_file=None)

            assert settings.max_workers == 4
            assert settings.coast_search_horizon == 50

    def test_log_level_validation(self):
        """Test FI_LOG_LEVEL validation."""
        with patch.dict(os.environ, {"FI_LOG_LEVEL": "verbose"}):
            with pytest.raises(ValidationError) as exc_info:
                EngineSettings(_env_file=None)

            assert "FI_LOG_LEVEL must be one of" in str(exc_info.value)

    def test_log_level_is_uppercased(self):
        """Test that a lowercase log level is accepted."""
        with patch.dict(os.environ, {"FI_LOG_LEVEL": "warning"}):
            assert EngineSettings(_env_file=None).log_level == "WARNING"

    def test_projection_years_must_be_positive(self):
        """Test that a zero-row projection is rejected."""
        with patch.dict(os.environ, {"FI_PROJECTION_YEARS": "0"}):
            with pytest.raises(ValidationError):
                EngineSettings(_env_file=None)


class TestGlobalSettings:
    """Test cases for the cached global settings."""

    def test_global_settings_are_cached(self):
        """Test that the same instance is returned until reset."""
        first = get_global_settings()
        assert get_global_settings() is first

        reset_global_settings()
        assert get_global_settings() is not first

    def test_reset_picks_up_environment(self):
        """Test that a reset re-reads the environment."""
        with patch.dict(os.environ, {"FI_PROJECTION_YEARS": "11"}):
            reset_global_settings()
            assert get_global_settings().projection_years == 11


class TestConfigureLogging:
    """Test cases for configure_logging."""

    def test_sets_package_logger_level(self):
        """Test that the package logger follows the configured level."""
        with patch.dict(os.environ, {"FI_LOG_LEVEL": "DEBUG"}):
            configure_logging(EngineSettings(_env_file=None))

        logger = logging.getLogger("fi_engine")
        assert logger.level == logging.DEBUG
        assert logger.handlers

    def test_does_not_duplicate_handlers(self):
        """Test that repeated configuration keeps a single handler."""
        configure_logging()
        count = len(logging.getLogger("fi_engine").handlers)
        configure_logging()

        assert len(logging.getLogger("fi_engine").handlers) == count
