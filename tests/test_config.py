"""Tests for environment configuration."""

import logging

import pytest
import jax.numpy as jnp

from odebench.config import Settings, configure, parse_bool


class TestParseBool:

    @pytest.mark.parametrize("text", ["1", "true", "TRUE", " yes ", "on"])
    def test_true(self, text):
        assert parse_bool(text) is True

    @pytest.mark.parametrize("text", ["0", "false", "No", "off"])
    def test_false(self, text):
        assert parse_bool(text) is False

    def test_invalid(self):
        with pytest.raises(ValueError, match="boolean"):
            parse_bool("maybe")


class TestSettings:

    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings == Settings()
        assert settings.enable_x64 is True
        assert settings.platform is None

    def test_from_env(self):
        settings = Settings.from_env({
            "ODEBENCH_ENABLE_X64": "false",
            "ODEBENCH_LOG_LEVEL": "debug",
            "ODEBENCH_PLATFORM": "cpu",
            "ODEBENCH_LOG_COMPILES": "1",
        })
        assert settings == Settings(
            enable_x64=False, log_level="DEBUG", platform="cpu", log_compiles=True
        )

    def test_rejects_unknown_log_level(self):
        with pytest.raises(ValueError, match="log level"):
            Settings.from_env({"ODEBENCH_LOG_LEVEL": "chatty"})

    def test_configure(self):
        package_logger = logging.getLogger("odebench")
        previous = package_logger.level
        try:
            configure(Settings(log_level="DEBUG"))
            assert package_logger.level == logging.DEBUG
            assert jnp.zeros(1).dtype == jnp.float64
        finally:
            package_logger.setLevel(previous)
