"""Exception hierarchy for spaces-browser."""
from __future__ import annotations


class SpacesError(Exception):
    """Base exception for all spaces-browser errors."""


class SigningError(SpacesError):
    """Raised when credential material cannot be used to sign requests."""


class DecodeError(SpacesError):
    """Raised when a response body cannot be decoded."""


class MalformedBodyError(DecodeError):
    """Raised when a response body is not a well-formed XML document."""

    def __init__(self, body_length: int, body_digest: str, reason: str = ""):
        self.body_length = body_length
        self.body_digest = body_digest
        self.reason = reason
        message = f"Malformed response body ({body_length} bytes, sha256={body_digest[:12]})"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class UnexpectedDocumentError(DecodeError):
    """Raised when a well-formed body holds a different listing than requested."""

    def __init__(self, expected: str, document: str):
        self.expected = expected
        self.document = document
        super().__init__(f"Expected a {expected} listing but received a <{document}> document")


class CredentialStoreError(SpacesError):
    """Raised when credentials cannot be persisted."""


class OperationError(SpacesError):
    """Raised when a list operation fails."""


class RemoteError(OperationError):
    """The service answered with a structured error document."""

    def __init__(self, code: str, message: str, status: int | None = None):
        self.code = code
        self.message = message
        self.status = status
        super().__init__(f"{code}: {message}" if message else code)


class TransportError(OperationError):
    """The request never produced an HTTP response."""

    def __init__(self, message: str, cause: BaseException | None = None):
        self.cause = cause
        super().__init__(message)


class ConnectivityError(TransportError):
    """Connection refused, DNS failure, proxy failure or timeout."""


class ProtocolNegotiationError(TransportError):
    """TLS handshake or certificate verification failure."""
