"""Tests for the EMF metrics module."""

import json

from sigv4_transport.metrics import (
    MetricDimensions,
    MetricsEmitter,
    MetricUnit,
    SigningMetricName,
)


def _emitted(capsys) -> dict:
    return json.loads(capsys.readouterr().out.strip())


class TestMetricDimensions:
    """Tests for MetricDimensions dataclass."""

    def test_default_dimensions(self):
        result = MetricDimensions(environment="test").to_dict()

        assert result == {"Environment": "test"}

    def test_custom_dimensions(self):
        result = MetricDimensions(
            environment="production",
            service_name="execute-api",
            region="eu-west-1",
            error_type="ConnectError",
        ).to_dict()

        assert result == {
            "Environment": "production",
            "ServiceName": "execute-api",
            "Region": "eu-west-1",
            "ErrorType": "ConnectError",
        }


class TestMetricsEmitter:
    """Tests for MetricsEmitter class."""

    def test_emit_multiple(self, capsys):
        emitter = MetricsEmitter(service_name="test-service")

        emitter.emit_multiple({
            SigningMetricName.SIGNING_COUNT: (1, MetricUnit.COUNT),
            SigningMetricName.SIGNING_LATENCY: (1.5, MetricUnit.MILLISECONDS),
        })

        output = _emitted(capsys)
        cloudwatch = output["_aws"]["CloudWatchMetrics"][0]
        assert cloudwatch["Namespace"] == "SigV4Transport"
        assert {"Name": "SigningLatency", "Unit": "Milliseconds"} in cloudwatch["Metrics"]
        assert output["SigningCount"] == 1
        assert output["SigningLatency"] == 1.5
        assert output["service"] == "test-service"

    def test_record_signing_failure(self, capsys):
        MetricsEmitter().record_signing(
            success=False,
            latency_ms=0.4,
            service_name="execute-api",
            region="eu-west-1",
            error="No AWS credentials found",
        )

        output = _emitted(capsys)
        assert output["SigningFailure"] == 1
        assert "SigningSuccess" not in output
        assert output["ErrorType"] == "signing"
        assert output["error"] == "No AWS credentials found"

    def test_record_request_status_classes(self, capsys):
        emitter = MetricsEmitter()

        emitter.record_request(12.0, "execute-api", "eu-west-1", status_code=204)
        emitter.record_request(12.0, "execute-api", "eu-west-1", status_code=403)
        emitter.record_request(12.0, "execute-api", "eu-west-1", status_code=503)

        outputs = [json.loads(line) for line in capsys.readouterr().out.strip().splitlines()]
        assert outputs[0]["RequestSuccess"] == 1
        assert outputs[1]["RequestClientError"] == 1
        assert outputs[2]["RequestServerError"] == 1

    def test_record_request_transport_error(self, capsys):
        MetricsEmitter().record_request(
            30000.0, "execute-api", "eu-west-1", error="ReadTimeout"
        )

        output = _emitted(capsys)
        assert output["RequestTransportError"] == 1
        assert output["ErrorType"] == "ReadTimeout"
        assert "statusCode" not in output
