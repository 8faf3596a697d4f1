"""Domain exceptions.

Routes translate these into wire responses: JSON for the submit and admin
surfaces, ``ERROR:`` text or OTA ``<Errors>`` for the AlpineBits endpoint.
"""

from __future__ import annotations


class AlpineBridgeError(Exception):
    """Base class for all domain errors."""


class UnknownHotelError(AlpineBridgeError):
    """Hotel code is not provisioned."""

    def __init__(self, hotel_code: str):
        self.hotel_code = hotel_code
        super().__init__(f"Hotel with code '{hotel_code}' not found")


class SubmissionValidationError(AlpineBridgeError):
    """One or more submission rules were violated.

    All violations are collected; ``messages`` keeps them in rule order.
    """

    def __init__(self, messages: list[str]):
        self.messages = list(messages)
        super().__init__(", ".join(self.messages))


class StorageError(AlpineBridgeError):
    """Datastore read or write failed."""


class ProtocolFormatError(AlpineBridgeError):
    """Inbound OTA-XML or capability document is malformed."""


class AuthError(AlpineBridgeError):
    """Protocol envelope rejected: credentials or mandatory headers.

    Attributes:
        status_code: HTTP status to answer with (400, 401 or 500).
        reason: Text placed after the ``ERROR:`` prefix.
        challenge: Whether a WWW-Authenticate challenge must be sent.
    """

    def __init__(self, status_code: int, reason: str, *, challenge: bool = False):
        self.status_code = status_code
        self.reason = reason
        self.challenge = challenge
        super().__init__(reason)


class UnsupportedActionError(AlpineBridgeError):
    """The ``action`` form field names no known AlpineBits action."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"invalid action '{action}'")
