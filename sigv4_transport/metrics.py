"""
CloudWatch metrics for signed requests.

Metrics are published with the Embedded Metric Format (EMF): one JSON
document per line on stdout, from which CloudWatch extracts the values.

Two groups are recorded:
- Signing: attempts, failures and time spent computing signatures
- Requests: delegated requests, their status class and latency
"""

import json
import os
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class MetricUnit(str, Enum):
    """CloudWatch metric units."""
    COUNT = "Count"
    MILLISECONDS = "Milliseconds"
    NONE = "None"


class SigningMetricName(str, Enum):
    """Metric names for the signing transport."""
    # Signing
    SIGNING_COUNT = "SigningCount"
    SIGNING_SUCCESS = "SigningSuccess"
    SIGNING_FAILURE = "SigningFailure"
    SIGNING_LATENCY = "SigningLatency"

    # Delegated requests
    REQUEST_COUNT = "RequestCount"
    REQUEST_SUCCESS = "RequestSuccess"
    REQUEST_CLIENT_ERROR = "RequestClientError"
    REQUEST_SERVER_ERROR = "RequestServerError"
    REQUEST_TRANSPORT_ERROR = "RequestTransportError"
    REQUEST_LATENCY = "RequestLatency"


@dataclass
class MetricDimensions:
    """Dimensions for CloudWatch metrics."""
    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))
    service_name: Optional[str] = None
    region: Optional[str] = None
    error_type: Optional[str] = None

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary, excluding None values."""
        result = {"Environment": self.environment}
        if self.service_name:
            result["ServiceName"] = self.service_name
        if self.region:
            result["Region"] = self.region
        if self.error_type:
            result["ErrorType"] = self.error_type
        return result


class MetricsEmitter:
    """
    CloudWatch metrics emitter using Embedded Metric Format (EMF).

    EMF allows publishing metrics by simply logging JSON in a specific format.
    CloudWatch automatically extracts metrics from these logs.
    """

    NAMESPACE = "SigV4Transport"

    def __init__(self, service_name: str = "sigv4-transport"):
        """
        Initialize the metrics emitter.

        Args:
            service_name: Name of the emitting application
        """
        self.service_name = service_name

    def _create_emf_log(
        self,
        metrics: dict[str, tuple[float, MetricUnit]],
        dimensions: Optional[MetricDimensions] = None,
        properties: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        Create an EMF-formatted log entry.

        Args:
            metrics: Dictionary of metric name to (value, unit) tuples
            dimensions: Optional custom dimensions
            properties: Additional properties to include in the log

        Returns:
            EMF-formatted dictionary
        """
        dim_dict = (dimensions or MetricDimensions()).to_dict()

        emf_log: dict[str, Any] = {
            "_aws": {
                "Timestamp": int(time.time() * 1000),
                "CloudWatchMetrics": [
                    {
                        "Namespace": self.NAMESPACE,
                        "Dimensions": [list(dim_dict.keys())],
                        "Metrics": [
                            {"Name": name, "Unit": unit.value}
                            for name, (_, unit) in metrics.items()
                        ],
                    }
                ],
            },
            "service": self.service_name,
            **dim_dict,
        }

        for name, (value, _) in metrics.items():
            emf_log[name] = value

        if properties:
            emf_log.update(properties)

        return emf_log

    def emit_multiple(
        self,
        metrics: dict[SigningMetricName, tuple[float, MetricUnit]],
        dimensions: Optional[MetricDimensions] = None,
        properties: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Emit multiple metrics in a single log entry.

        Args:
            metrics: Dictionary of metric name to (value, unit) tuples
            dimensions: Optional custom dimensions
            properties: Additional properties to log
        """
        metrics_dict = {name.value: value_unit for name, value_unit in metrics.items()}
        print(json.dumps(self._create_emf_log(metrics_dict, dimensions, properties)))

    def record_signing(
        self,
        success: bool,
        latency_ms: float,
        service_name: str,
        region: str,
        error: Optional[str] = None,
    ) -> None:
        """
        Record a signing attempt.

        Args:
            success: Whether the request was signed
            latency_ms: Time spent capturing the body and signing
            service_name: Service in the credential scope
            region: Region in the credential scope
            error: Error message if signing failed
        """
        dims = MetricDimensions(
            service_name=service_name or None,
            region=region or None,
            error_type="signing" if not success else None,
        )

        metrics: dict[SigningMetricName, tuple[float, MetricUnit]] = {
            SigningMetricName.SIGNING_COUNT: (1, MetricUnit.COUNT),
            SigningMetricName.SIGNING_LATENCY: (latency_ms, MetricUnit.MILLISECONDS),
        }
        if success:
            metrics[SigningMetricName.SIGNING_SUCCESS] = (1, MetricUnit.COUNT)
        else:
            metrics[SigningMetricName.SIGNING_FAILURE] = (1, MetricUnit.COUNT)

        properties = {"error": error[:200]} if error else None
        self.emit_multiple(metrics, dims, properties)

    def record_request(
        self,
        latency_ms: float,
        service_name: str,
        region: str,
        status_code: Optional[int] = None,
        error: Optional[str] = None,
    ) -> None:
        """
        Record a delegated request.

        Args:
            latency_ms: Time spent in the inner transport
            service_name: Service in the credential scope
            region: Region in the credential scope
            status_code: HTTP status code, None when the transport failed
            error: Error message if the transport failed
        """
        dims = MetricDimensions(
            service_name=service_name or None,
            region=region or None,
            error_type=error[:50] if error else None,
        )

        metrics: dict[SigningMetricName, tuple[float, MetricUnit]] = {
            SigningMetricName.REQUEST_COUNT: (1, MetricUnit.COUNT),
            SigningMetricName.REQUEST_LATENCY: (latency_ms, MetricUnit.MILLISECONDS),
        }
        if status_code is None:
            metrics[SigningMetricName.REQUEST_TRANSPORT_ERROR] = (1, MetricUnit.COUNT)
        elif status_code >= 500:
            metrics[SigningMetricName.REQUEST_SERVER_ERROR] = (1, MetricUnit.COUNT)
        elif status_code >= 400:
            metrics[SigningMetricName.REQUEST_CLIENT_ERROR] = (1, MetricUnit.COUNT)
        else:
            metrics[SigningMetricName.REQUEST_SUCCESS] = (1, MetricUnit.COUNT)

        properties: dict[str, Any] = {}
        if status_code is not None:
            properties["statusCode"] = status_code
        if error:
            properties["error"] = error[:200]

        self.emit_multiple(metrics, dims, properties)
