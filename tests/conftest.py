"""
Pytest configuration and fixtures for sigv4_transport tests.

Requests never leave the process: the inner transport is an
``httpx.MockTransport`` answering ``200 OK`` and recording what it received.
"""

import logging

import boto3
import httpx
import pytest
from botocore.credentials import Credentials

TEST_ACCESS_KEY = "AKIDEXAMPLE"
TEST_SECRET_KEY = "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY"
TEST_REGION = "eu-west-1"


class RecordingHandler:
    """MockTransport handler answering 200 OK and keeping each request it saw."""

    def __init__(self, status_code: int = 200):
        self.status_code = status_code
        self.error: Exception | None = None
        self.requests: list[httpx.Request] = []
        self.bodies: list[bytes] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.bodies.append(request.read())
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, text="200 OK")

    @property
    def call_count(self) -> int:
        return len(self.requests)


@pytest.fixture
def credentials() -> Credentials:
    """Static credentials for signing."""
    return Credentials(TEST_ACCESS_KEY, TEST_SECRET_KEY)


@pytest.fixture
def session() -> boto3.Session:
    """A boto3 session with static credentials in eu-west-1."""
    return boto3.Session(
        aws_access_key_id=TEST_ACCESS_KEY,
        aws_secret_access_key=TEST_SECRET_KEY,
        region_name=TEST_REGION,
    )


@pytest.fixture
def echo_handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def echo_transport(echo_handler: RecordingHandler) -> httpx.MockTransport:
    """Inner transport answering 200 OK to every request."""
    return httpx.MockTransport(echo_handler)


@pytest.fixture
def test_logger(caplog: pytest.LogCaptureFixture) -> logging.Logger:
    """A logger whose DEBUG records are captured by caplog."""
    caplog.set_level(logging.DEBUG, logger="tests.signing")
    return logging.getLogger("tests.signing")
