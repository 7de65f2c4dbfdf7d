"""
Send a single SigV4-signed HTTP request.

Usage:
    sigv4-request https://abc123.execute-api.eu-west-1.amazonaws.com/prod/items
    sigv4-request -X POST -d '{"name": "x"}' -H 'Content-Type: application/json' URL
    sigv4-request --service es --region eu-west-1 --profile dev URL --verbose

Authentication:
    Credentials are resolved by boto3 in the usual order:
    - Environment variables (AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY)
    - AWS credentials file (~/.aws/credentials)
    - IAM role (when running on EC2/Lambda/ECS)
    - AWS profile (--profile option)
"""

import argparse
import sys
from typing import Optional, Sequence

import httpx

from .auth import create_session
from .config import SigningConfig
from .errors import SigningError
from .logging_config import setup_logging
from .metrics import MetricsEmitter
from .tracing import add_signing_span_attributes, get_tracer, init_tracing
from .transport import SigningTransport


def parse_header(value: str) -> tuple[str, str]:
    """Parse a 'Name: value' header argument."""
    name, sep, header_value = value.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"Invalid header {value!r}, expected 'Name: value'")
    return name.strip(), header_value.strip()


def build_parser(config: SigningConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sigv4-request",
        description="Send an HTTP request signed with AWS SigV4",
    )
    parser.add_argument("url", help="Request URL")
    parser.add_argument("-X", "--method", default="GET", help="HTTP method (default: GET)")
    parser.add_argument(
        "-H", "--header",
        action="append",
        type=parse_header,
        default=[],
        help="Request header as 'Name: value' (repeatable)",
    )
    parser.add_argument("-d", "--data", help="Request body")
    parser.add_argument(
        "--service",
        default=config.service_name,
        help=f"Service name for the signature (default: {config.service_name})",
    )
    parser.add_argument(
        "--region",
        default=config.aws_region,
        help=f"AWS region (default: {config.aws_region})",
    )
    parser.add_argument("--profile", default=config.aws_profile, help="AWS profile name")
    parser.add_argument("--timeout", type=float, default=30.0, help="Timeout in seconds")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log requests and responses")
    return parser


def send_request(
    transport: SigningTransport,
    method: str,
    url: str,
    headers: list[tuple[str, str]],
    data: Optional[str],
    timeout: float,
) -> httpx.Response:
    """Send one request through the signing transport."""
    method = method.upper()
    with get_tracer().start_as_current_span("sigv4.request") as span:
        add_signing_span_attributes(
            span, transport.service_name, transport.region, method=method
        )
        span.set_attribute("http.url", url)

        with httpx.Client(transport=transport, timeout=timeout) as client:
            response = client.request(
                method,
                url,
                headers=headers,
                content=data.encode("utf-8") if data is not None else None,
            )

        span.set_attribute("http.status_code", response.status_code)
        return response


def main(argv: Optional[Sequence[str]] = None) -> int:
    config = SigningConfig.from_env()
    args = build_parser(config).parse_args(argv)

    setup_logging("DEBUG" if args.verbose else config.log_level)
    if config.otel_endpoint or config.otel_console_export:
        init_tracing(
            otlp_endpoint=config.otel_endpoint or None,
            enable_console_export=config.otel_console_export,
        )

    session = create_session(profile_name=args.profile, region_name=args.region)
    transport = SigningTransport.from_session(
        session,
        args.service,
        metrics=MetricsEmitter() if config.emit_metrics else None,
    )

    try:
        response = send_request(
            transport, args.method, args.url, args.header, args.data, args.timeout
        )
    except SigningError as e:
        print(f"Signing failed: {e}", file=sys.stderr)
        return 2
    except httpx.TransportError as e:
        print(f"Request failed: {e}", file=sys.stderr)
        return 2

    print(f"HTTP {response.status_code} {response.reason_phrase}")
    print(response.text)
    return 1 if response.is_error else 0


if __name__ == "__main__":
    sys.exit(main())
