"""Request-scoped context for log enrichment.

Holds the correlation ID of the current HTTP request and, for AlpineBits
calls, the client ID announced by the PMS.
"""

import uuid
from contextvars import ContextVar, Token

# Context variables - accessible across async calls
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")
alpinebits_client_id_var: ContextVar[str] = ContextVar("alpinebits_client_id", default="")

CORRELATION_ID_HEADER = "X-Correlation-ID"


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return str(uuid.uuid4())


def get_correlation_id() -> str:
    return correlation_id_var.get()


def set_correlation_id(cid: str) -> Token[str]:
    return correlation_id_var.set(cid)


def reset_correlation_id(token: Token[str]) -> None:
    correlation_id_var.reset(token)


def get_alpinebits_client_id() -> str:
    """Get the AlpineBits client ID bound to the current request, if any."""
    return alpinebits_client_id_var.get()


def set_alpinebits_client_id(client_id: str) -> Token[str]:
    return alpinebits_client_id_var.set(client_id)


def reset_alpinebits_client_id(token: Token[str]) -> None:
    alpinebits_client_id_var.reset(token)
