"""
httpx transports that sign every request with AWS SigV4.

``SigningTransport`` wraps any ``httpx.BaseTransport``; when set as the
transport of an ``httpx.Client`` it captures the request body, signs the
request, logs it, and hands it to the inner transport. The inner transport
and the logger are optional; when unset, an ``httpx.HTTPTransport`` and a
logger tagged with ``client=<class name>`` are used. ``AsyncSigningTransport``
does the same for ``httpx.AsyncClient``.

Usage:
    import boto3
    import httpx
    from sigv4_transport import SigningTransport

    session = boto3.Session(region_name="eu-west-1")
    transport = SigningTransport.from_session(session, "execute-api")

    with httpx.Client(transport=transport) as client:
        response = client.get("https://abc123.execute-api.eu-west-1.amazonaws.com/prod/items")
"""

import datetime
import io
import logging
import threading
import time
from contextlib import contextmanager
from typing import Iterator, Optional, Union

import boto3
import httpx
from opentelemetry import trace

from .auth import RequestSigner, SigV4Signer
from .errors import SigningError
from .metrics import MetricsEmitter
from .tracing import add_signing_span_attributes, get_tracer

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]


class ClientLoggerAdapter(logging.LoggerAdapter):
    """Adds the adapter fields to each record, keeping the caller's ``extra``."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def _region_from_session(session: boto3.Session) -> str:
    region = session.region_name
    if not region:
        raise ValueError("No AWS region configured for the session")
    return region


def _read_and_replace_body(request: httpx.Request) -> bytes:
    """Drain the request body and replace it with a replayable stream."""
    if not isinstance(request.stream, httpx.SyncByteStream):
        raise SigningError("Request body is not a synchronous byte stream")
    try:
        payload = request.read()
    except Exception as e:
        raise SigningError(f"Failed to read request body: {e}") from e

    request.stream = httpx.ByteStream(payload)
    return payload


async def _aread_and_replace_body(request: httpx.Request) -> bytes:
    """Async counterpart of ``_read_and_replace_body``."""
    if not isinstance(request.stream, httpx.AsyncByteStream):
        raise SigningError("Request body is not an asynchronous byte stream")
    try:
        payload = await request.aread()
    except Exception as e:
        raise SigningError(f"Failed to read request body: {e}") from e

    request.stream = httpx.ByteStream(payload)
    return payload


def _attach_request(response: httpx.Response, request: httpx.Request) -> None:
    # Transports return responses without a request; httpx.Client sets it later.
    try:
        response.request
    except RuntimeError:
        response.request = request


class _SigningTransportBase:
    """
    Shared configuration, signing and logging for the signing transports.

    The signer, region and service name are fixed at construction. The inner
    transport, logger and metrics emitter are public attributes that may be
    replaced before the transport is shared between threads or tasks.

    Attributes:
        transport: Inner transport, or None for the default one
        logger: Logger or LoggerAdapter, or None for the default one. The
            log records carry their fields in ``extra``; before Python 3.13 a
            plain LoggerAdapter replaces ``extra`` with its own dict, so pass
            an adapter whose ``process`` merges the two (as
            ``ClientLoggerAdapter`` does) to keep them.
        metrics: Optional CloudWatch EMF emitter
    """

    def __init__(
        self,
        signer: RequestSigner,
        region: str,
        service_name: str,
        transport=None,
        logger: Optional[LoggerLike] = None,
        metrics: Optional[MetricsEmitter] = None,
    ):
        self._signer = signer
        self._region = region
        self._service_name = service_name
        self.transport = transport
        self.logger = logger
        self.metrics = metrics
        self._default_logger = ClientLoggerAdapter(
            logging.getLogger(__name__), {"client": type(self).__name__}
        )
        self._default_transport = None
        self._default_transport_lock = threading.Lock()

    @classmethod
    def from_session(cls, session: boto3.Session, service_name: str, **kwargs):
        """
        Create a transport signing with the credentials and region of a session.

        Args:
            session: boto3 session providing credentials and region
            service_name: Service name used in the credential scope
            **kwargs: transport, logger or metrics overrides

        Returns:
            Configured transport

        Raises:
            ValueError: If the session has no region
        """
        return cls(
            SigV4Signer.from_session(session),
            _region_from_session(session),
            service_name,
            **kwargs,
        )

    @property
    def signer(self) -> RequestSigner:
        return self._signer

    @property
    def region(self) -> str:
        return self._region

    @property
    def service_name(self) -> str:
        return self._service_name

    def _new_default_transport(self):
        raise NotImplementedError

    def _get_transport(self):
        if self.transport is not None:
            return self.transport
        # Created on first use.
        with self._default_transport_lock:
            if self._default_transport is None:
                self._default_transport = self._new_default_transport()
            return self._default_transport

    def _get_logger(self) -> LoggerLike:
        if self.logger is not None:
            return self.logger
        return self._default_logger

    @contextmanager
    def _signing(self, request: httpx.Request) -> Iterator[trace.Span]:
        """Wrap body capture and signing with a span, metrics and error logging."""
        started = time.perf_counter()
        with get_tracer().start_as_current_span("sigv4.sign") as span:
            add_signing_span_attributes(
                span, self._service_name, self._region, method=request.method
            )
            try:
                yield span
            except Exception as e:
                self._record_signing(started, error=e)
                self._get_logger().error(
                    "Couldn't sign the request", extra={"error": e}
                )
                raise
        self._record_signing(started)

    def _sign(self, request: httpx.Request, payload: bytes, span: trace.Span) -> None:
        result = self._signer.sign(
            request,
            io.BytesIO(payload),
            self._service_name,
            self._region,
            datetime.datetime.now(datetime.timezone.utc),
        )
        signed_headers = getattr(result, "signed_headers", None)
        if signed_headers:
            span.set_attribute("sigv4.signed_headers", signed_headers)

    def _log_request(self, request: httpx.Request) -> None:
        self._get_logger().debug(
            "---> %s %s",
            request.method,
            request.url,
            extra={"http_method": request.method, "url": str(request.url)},
        )

    def _log_response(self, response: httpx.Response, duration: float) -> None:
        url = response.request.url
        self._get_logger().debug(
            "<--- %d %s",
            response.status_code,
            url,
            extra={
                "duration": duration,
                "status_code": response.status_code,
                "url": str(url),
            },
        )

    def _record_signing(self, started: float, error: Optional[Exception] = None) -> None:
        if self.metrics is None:
            return
        self.metrics.record_signing(
            success=error is None,
            latency_ms=(time.perf_counter() - started) * 1000,
            service_name=self._service_name,
            region=self._region,
            error=str(error) if error else None,
        )

    def _record_request(
        self,
        duration: float,
        status_code: Optional[int] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        if self.metrics is None:
            return
        self.metrics.record_request(
            latency_ms=duration * 1000,
            service_name=self._service_name,
            region=self._region,
            status_code=status_code,
            error=type(error).__name__ if error else None,
        )


class SigningTransport(_SigningTransportBase, httpx.BaseTransport):
    """
    ``httpx.BaseTransport`` decorator signing requests with AWS SigV4.

    Each request is handled independently:
    1. The body is drained and replaced with a replayable stream
    2. The request is signed in place
    3. The outbound request is logged at DEBUG
    4. The inner transport sends it
    5. The response status and the time spent in step 4 are logged at DEBUG

    A signing failure is logged at ERROR and raised; the request is not sent.
    Errors from the inner transport propagate unchanged.
    """

    def __init__(
        self,
        signer: RequestSigner,
        region: str,
        service_name: str,
        transport: Optional[httpx.BaseTransport] = None,
        logger: Optional[LoggerLike] = None,
        metrics: Optional[MetricsEmitter] = None,
    ):
        super().__init__(signer, region, service_name, transport, logger, metrics)

    def _new_default_transport(self) -> httpx.BaseTransport:
        return httpx.HTTPTransport()

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        with self._signing(request) as span:
            payload = _read_and_replace_body(request)
            self._sign(request, payload, span)

        self._log_request(request)
        started = time.perf_counter()
        try:
            response = self._get_transport().handle_request(request)
        except Exception as e:
            self._record_request(time.perf_counter() - started, error=e)
            raise
        duration = time.perf_counter() - started

        _attach_request(response, request)
        self._log_response(response, duration)
        self._record_request(duration, status_code=response.status_code)
        return response

    def close(self) -> None:
        # An injected transport belongs to the caller.
        if self._default_transport is not None:
            self._default_transport.close()


class AsyncSigningTransport(_SigningTransportBase, httpx.AsyncBaseTransport):
    """``httpx.AsyncBaseTransport`` counterpart of ``SigningTransport``."""

    def __init__(
        self,
        signer: RequestSigner,
        region: str,
        service_name: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[LoggerLike] = None,
        metrics: Optional[MetricsEmitter] = None,
    ):
        super().__init__(signer, region, service_name, transport, logger, metrics)

    def _new_default_transport(self) -> httpx.AsyncBaseTransport:
        return httpx.AsyncHTTPTransport()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        with self._signing(request) as span:
            payload = await _aread_and_replace_body(request)
            self._sign(request, payload, span)

        self._log_request(request)
        started = time.perf_counter()
        try:
            response = await self._get_transport().handle_async_request(request)
        except Exception as e:
            self._record_request(time.perf_counter() - started, error=e)
            raise
        duration = time.perf_counter() - started

        _attach_request(response, request)
        self._log_response(response, duration)
        self._record_request(duration, status_code=response.status_code)
        return response

    async def aclose(self) -> None:
        if self._default_transport is not None:
            await self._default_transport.aclose()


def new_transport(session: boto3.Session, service_name: str) -> SigningTransport:
    """Create a ``SigningTransport`` from a boto3 session and a service name."""
    return SigningTransport.from_session(session, service_name)
