"""Exceptions raised by the signing transport."""


class SigningError(Exception):
    """Raised when a request cannot be signed.

    Covers missing or expired credentials, a request body that cannot be
    read, and failures while computing the signature. The request is never
    sent when this is raised.
    """
