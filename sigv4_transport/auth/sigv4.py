"""
AWS SigV4 signing for httpx requests.

This module provides the default signer used by the signing transports.
It computes an AWS Signature Version 4 over an ``httpx.Request`` and writes
the resulting ``X-Amz-Date`` and ``Authorization`` headers into the request
in place.

Usage:
    import datetime
    import io

    import httpx
    from sigv4_transport.auth import SigV4Signer, create_session

    signer = SigV4Signer.from_session(create_session(region_name="eu-west-1"))
    request = httpx.Request("GET", "https://example.execute-api.eu-west-1.amazonaws.com/items")
    signer.sign(
        request,
        io.BytesIO(b""),
        "execute-api",
        "eu-west-1",
        datetime.datetime.now(datetime.timezone.utc),
    )
"""

import datetime
import hashlib
import hmac
import re
from dataclasses import dataclass
from typing import BinaryIO, Optional, Protocol
from urllib.parse import quote

import boto3
import httpx
from botocore.credentials import Credentials, ReadOnlyCredentials
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import SigningError

ALGORITHM = "AWS4-HMAC-SHA256"

AMZ_DATE_HEADER = "X-Amz-Date"
AUTHORIZATION_HEADER = "Authorization"
SECURITY_TOKEN_HEADER = "X-Amz-Security-Token"

# Never part of the signature; intermediaries rewrite them.
IGNORED_HEADERS = frozenset({"authorization", "user-agent", "x-amzn-trace-id"})

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class SigningResult:
    """Metadata describing a computed signature."""
    amz_date: str
    credential_scope: str
    signed_headers: str
    signature: str


class RequestSigner(Protocol):
    """Anything able to sign a request in place."""

    def sign(
        self,
        request: httpx.Request,
        body: BinaryIO,
        service_name: str,
        region: str,
        timestamp: datetime.datetime,
    ) -> SigningResult:
        ...


def create_session(
    profile_name: Optional[str] = None,
    region_name: Optional[str] = None,
) -> boto3.Session:
    """
    Create a boto3 session.

    Args:
        profile_name: Optional AWS profile name to use
        region_name: Optional region overriding the profile/environment one

    Returns:
        boto3 Session
    """
    return boto3.Session(profile_name=profile_name, region_name=region_name)


def get_aws_credentials(profile_name: Optional[str] = None) -> Credentials:
    """
    Get AWS credentials from the environment or profile.

    Args:
        profile_name: Optional AWS profile name to use

    Returns:
        botocore Credentials (possibly refreshable)

    Raises:
        ValueError: If credentials cannot be obtained
    """
    try:
        credentials = create_session(profile_name).get_credentials()
    except BotoCoreError as e:
        raise ValueError(f"Failed to get AWS credentials: {e}") from e

    if credentials is None:
        raise ValueError("No AWS credentials found")
    return credentials


class SigV4Signer:
    """
    AWS Signature Version 4 signer for httpx requests.

    Credentials are resolved on every call so that refreshable credentials
    (assumed roles, instance profiles) keep working for long-lived signers.

    Attributes:
        credentials: botocore credentials used for signing, or None
        disable_uri_path_escaping: Sign the path as sent instead of
            re-encoding it. S3 requires this.
    """

    def __init__(
        self,
        credentials: Optional[Credentials],
        disable_uri_path_escaping: bool = False,
    ):
        self.credentials = credentials
        self.disable_uri_path_escaping = disable_uri_path_escaping

    @classmethod
    def from_session(cls, session: boto3.Session) -> "SigV4Signer":
        """Create a signer bound to the credentials of a boto3 session."""
        return cls(session.get_credentials())

    def _resolve_credentials(self) -> ReadOnlyCredentials:
        if self.credentials is None:
            raise SigningError("No AWS credentials found")

        try:
            frozen = self.credentials.get_frozen_credentials()
        except (BotoCoreError, ClientError) as e:
            raise SigningError(f"Failed to resolve AWS credentials: {e}") from e

        if not frozen.access_key or not frozen.secret_key:
            raise SigningError("AWS credentials are incomplete")
        return frozen

    def _sign(self, key: bytes, msg: str) -> bytes:
        """Create HMAC-SHA256 signature."""
        return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()

    def _get_signature_key(
        self,
        secret_key: str,
        date_stamp: str,
        region: str,
        service_name: str,
    ) -> bytes:
        """
        Derive the signing key for SigV4.

        Args:
            secret_key: AWS secret access key
            date_stamp: Date in YYYYMMDD format
            region: AWS region
            service_name: AWS service name

        Returns:
            Derived signing key
        """
        k_date = self._sign(f"AWS4{secret_key}".encode("utf-8"), date_stamp)
        k_region = self._sign(k_date, region)
        k_service = self._sign(k_region, service_name)
        return self._sign(k_service, "aws4_request")

    def _hash_payload(self, body: BinaryIO) -> str:
        """Read the body once and return its SHA256 hex digest."""
        try:
            payload = body.read()
        except (OSError, ValueError) as e:
            raise SigningError(f"Failed to read request body: {e}") from e
        return hashlib.sha256(payload or b"").hexdigest()

    def _canonical_uri(self, url: httpx.URL) -> str:
        path = url.raw_path.decode("ascii").partition("?")[0] or "/"
        if self.disable_uri_path_escaping:
            return path
        # raw_path is already percent-encoded, so this encodes twice
        return quote(path, safe="/-_.~")

    def _canonical_query(self, url: httpx.URL) -> str:
        params = sorted(
            (quote(key, safe="-_.~"), quote(value, safe="-_.~"))
            for key, value in url.params.multi_items()
        )
        return "&".join(f"{key}={value}" for key, value in params)

    def _canonical_headers(self, headers: httpx.Headers) -> tuple[str, str]:
        """
        Build the canonical headers block and the signed headers list.

        Args:
            headers: Request headers

        Returns:
            Tuple of (canonical headers, semicolon-separated signed header names)
        """
        values: dict[str, list[str]] = {}
        for name, value in headers.multi_items():
            name = name.lower()
            if name in IGNORED_HEADERS:
                continue
            values.setdefault(name, []).append(_WHITESPACE_RE.sub(" ", value.strip()))

        names = sorted(values)
        canonical_headers = "".join(
            f"{name}:{','.join(values[name])}\n" for name in names
        )
        return canonical_headers, ";".join(names)

    def _create_string_to_sign(
        self,
        amz_date: str,
        credential_scope: str,
        canonical_request: str,
    ) -> str:
        return "\n".join([
            ALGORITHM,
            amz_date,
            credential_scope,
            hashlib.sha256(canonical_request.encode("utf-8")).hexdigest(),
        ])

    def sign(
        self,
        request: httpx.Request,
        body: BinaryIO,
        service_name: str,
        region: str,
        timestamp: datetime.datetime,
    ) -> SigningResult:
        """
        Sign an httpx request in place using AWS SigV4.

        Args:
            request: Request to sign; its headers are mutated
            body: Reader over the request body, read exactly once
            service_name: AWS service name used in the credential scope
            region: AWS region used in the credential scope
            timestamp: Signing time; naive values are taken as UTC

        Returns:
            SigningResult describing the signature

        Raises:
            SigningError: If credentials are unavailable or the body cannot be read
        """
        frozen = self._resolve_credentials()
        payload_hash = self._hash_payload(body)

        if timestamp.tzinfo is not None:
            timestamp = timestamp.astimezone(datetime.timezone.utc)
        amz_date = timestamp.strftime("%Y%m%dT%H%M%SZ")
        date_stamp = timestamp.strftime("%Y%m%d")

        request.headers[AMZ_DATE_HEADER] = amz_date
        if frozen.token:
            request.headers[SECURITY_TOKEN_HEADER] = frozen.token

        canonical_headers, signed_headers = self._canonical_headers(request.headers)
        canonical_request = "\n".join([
            request.method,
            self._canonical_uri(request.url),
            self._canonical_query(request.url),
            canonical_headers,
            signed_headers,
            payload_hash,
        ])

        credential_scope = f"{date_stamp}/{region}/{service_name}/aws4_request"
        string_to_sign = self._create_string_to_sign(
            amz_date, credential_scope, canonical_request
        )

        signing_key = self._get_signature_key(
            frozen.secret_key, date_stamp, region, service_name
        )
        signature = hmac.new(
            signing_key,
            string_to_sign.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

        request.headers[AUTHORIZATION_HEADER] = (
            f"{ALGORITHM} "
            f"Credential={frozen.access_key}/{credential_scope}, "
            f"SignedHeaders={signed_headers}, "
            f"Signature={signature}"
        )

        return SigningResult(
            amz_date=amz_date,
            credential_scope=credential_scope,
            signed_headers=signed_headers,
            signature=signature,
        )
