"""
PURPOSE: Error taxonomy for the Slack event endpoint.

HTTPError is the single exception the dispatch handler turns into a response.
Domain failures raised by the authenticator, parser and collaborators are
translated into it at the handler boundary, keeping the original exception
as __cause__ so the full chain reaches the logs.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class HTTPError(Exception):
    """
    PURPOSE: A terminal non-success outcome carrying its HTTP status code.

    Attributes:
        message: Human-readable description, rendered in the response body.
        status_code: HTTP status code for the response.
    """

    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return f"{self.message}: {self.status_code}"

    def to_response(self) -> Dict[str, Any]:
        """
        PURPOSE: Render the structured error body.

        Returns:
            dict: {"status_code": int, "error": str}
        """
        return {"status_code": self.status_code, "error": self.message}

    def cause_chain(self) -> List[str]:
        """Return "Type: message" for each chained cause, outermost first."""
        chain: List[str] = []
        exc: Optional[BaseException] = self.__cause__
        while exc is not None:
            chain.append(f"{type(exc).__name__}: {exc}")
            exc = exc.__cause__
        return chain


def _with_cause(message: str, cause: Optional[BaseException]) -> str:
    if cause is None:
        return message
    return f"{message}: {str(cause) or type(cause).__name__}"


def client_error(message: str, status_code: int = 400, cause: Optional[BaseException] = None) -> HTTPError:
    """Build a 4xx outcome, prefixing message to the cause's text."""
    return HTTPError(_with_cause(message, cause), status_code)


def server_error(message: str, cause: Optional[BaseException] = None) -> HTTPError:
    """Build a 500 outcome, prefixing message to the cause's text."""
    return HTTPError(_with_cause(message, cause), 500)


def not_implemented(kind: str) -> HTTPError:
    """Build the 501 outcome for a recognised but unsupported event kind."""
    return HTTPError(f"unhandled event: {kind}", 501)


# ════════════════════════════════════════════════════════════════
# Domain errors
# ════════════════════════════════════════════════════════════════


class AuthFailure(str, Enum):
    """Reason a delivery failed signature verification."""

    MISSING = "missing"
    EXPIRED = "expired"
    INVALID = "invalid"


class SignatureError(Exception):
    """Base class for request authentication failures."""

    reason: AuthFailure = AuthFailure.INVALID


class MissingSignatureError(SignatureError):
    reason = AuthFailure.MISSING


class ExpiredTimestampError(SignatureError):
    reason = AuthFailure.EXPIRED


class InvalidSignatureError(SignatureError):
    reason = AuthFailure.INVALID


class MalformedPayloadError(Exception):
    """The delivery body is not a decodable event envelope."""


class UnrecognizedEnvelopeError(Exception):
    """The envelope's type discriminant is not one this service knows."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"unrecognized envelope type: {kind!r}")
        self.kind = kind


class SlackAPIError(Exception):
    """The Slack Web API call failed or answered ok=false."""
