"""Configuration for the signing transport and the sigv4-request CLI."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass
class SigningConfig:
    """Configuration for signed requests."""

    # Signature scope
    aws_region: str = "us-east-1"
    service_name: str = "execute-api"
    aws_profile: Optional[str] = None

    # Logging
    log_level: str = "WARNING"

    # OpenTelemetry configuration
    otel_endpoint: str = ""
    otel_console_export: bool = False

    # CloudWatch EMF metrics
    emit_metrics: bool = False

    @classmethod
    def from_env(cls) -> "SigningConfig":
        """Load configuration from environment variables."""
        return cls(
            aws_region=os.getenv(
                "AWS_REGION", os.getenv("AWS_DEFAULT_REGION", cls.aws_region)
            ),
            service_name=os.getenv("SIGV4_SERVICE_NAME", cls.service_name),
            aws_profile=os.getenv("AWS_PROFILE") or None,
            log_level=os.getenv("SIGV4_LOG_LEVEL", cls.log_level).upper(),
            otel_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", ""),
            otel_console_export=os.getenv("OTEL_CONSOLE_EXPORT", "").lower() == "true",
            emit_metrics=os.getenv("SIGV4_EMIT_METRICS", "").lower() == "true",
        )
