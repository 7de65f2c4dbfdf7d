"""Tests for the signing configuration module."""

import os
from unittest.mock import patch

from sigv4_transport.config import SigningConfig


class TestSigningConfig:
    """Tests for SigningConfig class."""

    def test_default_values(self):
        """Test that default values are set correctly."""
        config = SigningConfig()

        assert config.aws_region == "us-east-1"
        assert config.service_name == "execute-api"
        assert config.aws_profile is None
        assert config.log_level == "WARNING"
        assert config.emit_metrics is False

    def test_from_env_with_defaults(self):
        """Test from_env uses defaults when env vars not set."""
        with patch.dict(os.environ, {}, clear=True):
            config = SigningConfig.from_env()

            assert config.aws_region == "us-east-1"
            assert config.service_name == "execute-api"
            assert config.aws_profile is None
            assert config.otel_console_export is False

    def test_from_env_with_custom_values(self):
        """Test from_env reads environment variables correctly."""
        env_vars = {
            "AWS_REGION": "eu-west-1",
            "SIGV4_SERVICE_NAME": "es",
            "AWS_PROFILE": "dev",
            "SIGV4_LOG_LEVEL": "debug",
            "OTEL_EXPORTER_OTLP_ENDPOINT": "http://localhost:4317",
            "OTEL_CONSOLE_EXPORT": "true",
            "SIGV4_EMIT_METRICS": "TRUE",
        }

        with patch.dict(os.environ, env_vars, clear=True):
            config = SigningConfig.from_env()

            assert config.aws_region == "eu-west-1"
            assert config.service_name == "es"
            assert config.aws_profile == "dev"
            assert config.log_level == "DEBUG"
            assert config.otel_endpoint == "http://localhost:4317"
            assert config.otel_console_export is True
            assert config.emit_metrics is True

    def test_from_env_default_region_fallback(self):
        """Test AWS_DEFAULT_REGION is used when AWS_REGION is unset."""
        with patch.dict(os.environ, {"AWS_DEFAULT_REGION": "ap-southeast-2"}, clear=True):
            config = SigningConfig.from_env()

            assert config.aws_region == "ap-southeast-2"
