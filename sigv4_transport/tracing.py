"""OpenTelemetry tracing for the signing transport.

The transports only use the OpenTelemetry API, so spans are no-ops until an
application installs a provider. ``init_tracing`` installs one with:
- AWS X-Ray compatible trace ids and propagation
- Optional OTLP gRPC export
- Optional console export for debugging
"""

import os
from typing import Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.propagate import set_global_textmap
from opentelemetry.propagators.aws import AwsXRayPropagator
from opentelemetry.sdk.extension.aws.trace import AwsXRayIdGenerator
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

INSTRUMENTATION_NAME = "sigv4_transport"

_tracer: Optional[trace.Tracer] = None
_initialized = False


def init_tracing(
    service_name: str = "sigv4-transport",
    otlp_endpoint: Optional[str] = None,
    enable_console_export: bool = False,
) -> trace.Tracer:
    """Install a tracer provider and return the package tracer.

    Args:
        service_name: Name of the service for tracing
        otlp_endpoint: OTLP collector endpoint (e.g., "http://localhost:4317").
                      If None, uses OTEL_EXPORTER_OTLP_ENDPOINT env var
        enable_console_export: If True, also export spans to console

    Returns:
        Configured tracer instance
    """
    global _tracer, _initialized

    if _initialized and _tracer is not None:
        return _tracer

    resource = Resource.create({
        SERVICE_NAME: service_name,
        "deployment.environment": os.getenv("ENVIRONMENT", "development"),
    })

    provider = TracerProvider(
        resource=resource,
        id_generator=AwsXRayIdGenerator(),
    )
    set_global_textmap(AwsXRayPropagator())

    endpoint = otlp_endpoint or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True))
        )

    if enable_console_export or os.getenv("OTEL_CONSOLE_EXPORT", "").lower() == "true":
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)

    _tracer = trace.get_tracer(INSTRUMENTATION_NAME)
    _initialized = True
    return _tracer


def get_tracer() -> trace.Tracer:
    """Get the package tracer.

    Returns:
        The tracer from ``init_tracing`` if it ran, otherwise a tracer bound
        to whatever provider the application installed (no-op by default)
    """
    if _tracer is not None:
        return _tracer
    return trace.get_tracer(INSTRUMENTATION_NAME)


def add_signing_span_attributes(
    span: trace.Span,
    service_name: str,
    region: str,
    method: Optional[str] = None,
) -> None:
    """Add signing-specific attributes to a span.

    Args:
        span: The span to add attributes to
        service_name: Service in the credential scope
        region: Region in the credential scope
        method: HTTP method of the signed request
    """
    span.set_attribute("sigv4.service", service_name)
    span.set_attribute("sigv4.region", region)
    if method:
        span.set_attribute("http.method", method)
