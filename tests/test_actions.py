"""Tests for AlpineBits action resolution."""

import pytest

from alpinebridge.alpinebits.actions import ProtocolAction
from alpinebridge.domain.errors import UnsupportedActionError


@pytest.mark.parametrize(
    "value,expected",
    [
        ("OTA_Ping:Handshaking", ProtocolAction.HANDSHAKE),
        ("action_OTA_Ping", ProtocolAction.HANDSHAKE),
        ("OTA_Read:GuestRequests", ProtocolAction.READ),
        ("action_OTA_Read", ProtocolAction.READ),
        ("OTA_NotifReport:GuestRequests", ProtocolAction.ACKNOWLEDGE),
        ("action_OTA_NotifReport", ProtocolAction.ACKNOWLEDGE),
    ],
)
def test_both_spellings_resolve(value, expected):
    assert ProtocolAction.from_wire(value) is expected


@pytest.mark.parametrize("value", ["OTA_Read", "ota_read:guestrequests", "OTA_HotelResNotif:GuestRequests"])
def test_unknown_spelling_rejected(value):
    with pytest.raises(UnsupportedActionError) as exc_info:
        ProtocolAction.from_wire(value)
    assert str(exc_info.value) == f"invalid action '{value}'"


def test_message_labels():
    assert [a.message for a in ProtocolAction] == ["OTA_Ping", "OTA_Read", "OTA_NotifReport"]
