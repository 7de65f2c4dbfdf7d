"""
Request signing for the signing transports.

This module provides the AWS SigV4 signer injected into the transports by
default, and the protocol any replacement signer has to satisfy.
"""

from .sigv4 import (
    AMZ_DATE_HEADER,
    AUTHORIZATION_HEADER,
    SECURITY_TOKEN_HEADER,
    RequestSigner,
    SigningResult,
    SigV4Signer,
    create_session,
    get_aws_credentials,
)

__all__ = [
    "AMZ_DATE_HEADER",
    "AUTHORIZATION_HEADER",
    "SECURITY_TOKEN_HEADER",
    "RequestSigner",
    "SigningResult",
    "SigV4Signer",
    "create_session",
    "get_aws_credentials",
]
