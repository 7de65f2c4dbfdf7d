"""sigv4_transport - httpx transports signing requests with AWS SigV4."""

from .auth import RequestSigner, SigningResult, SigV4Signer, create_session, get_aws_credentials
from .config import SigningConfig
from .errors import SigningError
from .metrics import MetricsEmitter
from .transport import AsyncSigningTransport, ClientLoggerAdapter, SigningTransport, new_transport

__version__ = "0.1.0"

__all__ = [
    # Transports
    "SigningTransport",
    "AsyncSigningTransport",
    "new_transport",
    "ClientLoggerAdapter",
    # Signing
    "RequestSigner",
    "SigningResult",
    "SigV4Signer",
    "SigningError",
    "create_session",
    "get_aws_credentials",
    # Ambient
    "SigningConfig",
    "MetricsEmitter",
]
