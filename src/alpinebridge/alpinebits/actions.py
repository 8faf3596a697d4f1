"""AlpineBits actions understood by the /alpinebits endpoint.

Each action is accepted under two spellings: the historical
``<Message>:<Subject>`` form and the ``action_<Message>`` form used in
capability documents. Adding an action means adding one member here and one
handler in the service.
"""

from __future__ import annotations

from enum import Enum

from alpinebridge.domain.errors import UnsupportedActionError


class ProtocolAction(Enum):
    HANDSHAKE = ("OTA_Ping:Handshaking", "action_OTA_Ping", "OTA_Ping")
    READ = ("OTA_Read:GuestRequests", "action_OTA_Read", "OTA_Read")
    ACKNOWLEDGE = ("OTA_NotifReport:GuestRequests", "action_OTA_NotifReport", "OTA_NotifReport")

    def __init__(self, wire_name: str, capability_name: str, message: str):
        self.wire_name = wire_name
        self.capability_name = capability_name
        self.message = message

    @property
    def spellings(self) -> tuple[str, str]:
        return (self.wire_name, self.capability_name)

    @classmethod
    def from_wire(cls, value: str) -> ProtocolAction:
        """Resolve an ``action`` form value by exact match.

        Raises:
            UnsupportedActionError: If no action has this spelling.
        """
        action = _BY_SPELLING.get(value)
        if action is None:
            raise UnsupportedActionError(value)
        return action


_BY_SPELLING: dict[str, ProtocolAction] = {
    spelling: action for action in ProtocolAction for spelling in action.spellings
}
