"""OTA-XML codec for the AlpineBits GuestRequests exchange.

Parsing is lenient extraction, not schema validation: vendors add namespaces,
prefixes and attributes freely. Documents are read with lxml in recover mode
and queried through ``local-name()`` so none of that matters. Parse functions
never raise; they return None and the caller answers with a protocol error.

Responses are built from templates. Every free-text value and attribute goes
through escape_xml(). The one exception is the handshake EchoData, which is
returned exactly as the client sent it.
"""

from __future__ import annotations

import html
import json
import re
from dataclasses import dataclass
from typing import Sequence
from xml.sax.saxutils import escape

from lxml import etree

from alpinebridge.domain.capabilities import Capabilities
from alpinebridge.domain.errors import ProtocolFormatError
from alpinebridge.domain.models import GuestRequest, Hotel
from alpinebridge.infra.time import iso_timestamp
from alpinebridge.observability.logging import get_logger
from alpinebridge.observability.redaction import safe_log_context

logger = get_logger(__name__)

OTA_NS = "http://www.opentravel.org/OTA/2003/05"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
OTA_VERSION = "7.000"

XML_MEDIA_TYPE = "application/xml; charset=utf-8"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

# Roots used by error envelopes, per failing action
READ_RESPONSE_ROOT = "OTA_ResRetrieveRS"
ACKNOWLEDGE_RESPONSE_ROOT = "OTA_NotifReportRS"

UNKNOWN_GENDER = "Unknown"
RESERVATION_ID_TYPE = "14"  # OTA UIT code "Reservation"
PHONE_TECH_TYPE_VOICE = "1"

# EchoData may carry a namespace prefix and attributes; content is taken raw
_ECHO_DATA_PATTERN = re.compile(
    r"<(?:[\w.-]+:)?EchoData(?:\s[^>]*)?>(.*?)</(?:[\w.-]+:)?EchoData\s*>",
    re.DOTALL,
)
_CDATA_PATTERN = re.compile(r"^<!\[CDATA\[(.*)\]\]>$", re.DOTALL)

_QUOTE_ENTITIES = {'"': "&quot;", "'": "&apos;"}


# ── Parsed requests ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PingRequest:
    """OTA_PingRQ content.

    ``echo_data`` is the raw element content, entity-encoded or not, exactly
    as received.
    """

    echo_data: str
    capabilities: Capabilities


@dataclass(frozen=True)
class ReadRequest:
    hotel_code: str


@dataclass(frozen=True)
class AcknowledgeRequest:
    request_ids: list[str]


# ── Escaping ──────────────────────────────────────────────────────────────────


def escape_xml(value: object) -> str:
    """Escape ``& < > " '`` for use in text content or attribute values."""
    return escape(str(value), _QUOTE_ENTITIES)


# ── Parsing ───────────────────────────────────────────────────────────────────


def _parse_document(xml: str) -> etree._Element:
    """Parse an XML string leniently.

    Raises:
        ProtocolFormatError: If nothing usable could be recovered.
    """
    data = xml.strip().encode("utf-8")
    if not data:
        raise ProtocolFormatError("empty document")

    # Parsers are not shared between threads; build one per call
    parser = etree.XMLParser(recover=True, resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(data, parser)
    except etree.XMLSyntaxError as exc:
        raise ProtocolFormatError(f"unparseable document: {exc}") from exc
    if root is None:
        raise ProtocolFormatError("unparseable document")
    return root


def _local_name(element: etree._Element) -> str:
    return etree.QName(element).localname


def _log_parse_failure(kind: str, exc: ProtocolFormatError) -> None:
    logger.warning(
        "alpinebits request rejected",
        extra={"extra_fields": safe_log_context(kind=kind, reason=str(exc))},
    )


def _decode_echo_data(echo_data: str) -> str:
    decoded = html.unescape(echo_data).strip()
    cdata = _CDATA_PATTERN.match(decoded)
    if cdata:
        decoded = cdata.group(1).strip()
    return decoded


def parse_ping_request(xml: str) -> PingRequest | None:
    """Extract EchoData and the client capabilities from an OTA_PingRQ.

    Returns:
        PingRequest, or None if EchoData is missing or not a capability JSON.
    """
    try:
        match = _ECHO_DATA_PATTERN.search(xml)
        if match is None:
            raise ProtocolFormatError("missing EchoData")

        echo_data = match.group(1)
        try:
            document = json.loads(_decode_echo_data(echo_data))
        except ValueError as exc:
            raise ProtocolFormatError("EchoData is not valid JSON") from exc

        return PingRequest(echo_data=echo_data, capabilities=Capabilities.from_dict(document))
    except ProtocolFormatError as exc:
        _log_parse_failure("ping", exc)
        return None


def parse_read_request(xml: str) -> ReadRequest | None:
    """Extract the hotel code from an OTA_ReadRQ.

    Returns:
        ReadRequest, or None if the root is not OTA_ReadRQ or no HotelCode
        attribute is present.
    """
    try:
        root = _parse_document(xml)
        if _local_name(root) != "OTA_ReadRQ":
            raise ProtocolFormatError(f"unexpected root element {_local_name(root)}")

        for value in root.xpath("//@*[local-name()='HotelCode']"):
            hotel_code = str(value).strip()
            if hotel_code:
                return ReadRequest(hotel_code=hotel_code)
        raise ProtocolFormatError("missing HotelCode")
    except ProtocolFormatError as exc:
        _log_parse_failure("read", exc)
        return None


def parse_acknowledge_request(xml: str) -> AcknowledgeRequest | None:
    """Extract the acknowledged request IDs from an OTA_NotifReportRQ.

    IDs are returned in order of appearance, duplicates removed.

    Returns:
        AcknowledgeRequest, or None if no UniqueID/@ID is present.
    """
    try:
        root = _parse_document(xml)
        values = root.xpath("//*[local-name()='UniqueID']/@*[local-name()='ID']")
        request_ids = list(dict.fromkeys(str(v).strip() for v in values if str(v).strip()))
        if not request_ids:
            raise ProtocolFormatError("no UniqueID elements")
        return AcknowledgeRequest(request_ids=request_ids)
    except ProtocolFormatError as exc:
        _log_parse_failure("acknowledge", exc)
        return None


# ── Serialization ─────────────────────────────────────────────────────────────


def _pad(level: int) -> str:
    return "  " * level


def _guest_count_lines(request: GuestRequest, level: int) -> list[str]:
    pad = _pad(level)
    if request.children_count == 0:
        return [f'{pad}<GuestCount Count="{request.adult_count}"/>']

    lines = [f'{pad}<GuestCount Count="{request.adult_count}"/>']
    for age in request.child_ages:
        lines.append(f'{pad}<GuestCount Count="1" Age="{age}"/>')
    return lines


def _customer_lines(request: GuestRequest, level: int) -> list[str]:
    pad = _pad(level)
    attrs = ""
    if request.language:
        attrs += f' Language="{escape_xml(request.language)}"'
    attrs += f' Gender="{escape_xml(request.gender or UNKNOWN_GENDER)}"'

    lines = [f"{pad}<Customer{attrs}>"]
    if request.first_name or request.last_name:
        lines.append(f"{_pad(level + 1)}<PersonName>")
        if request.first_name:
            lines.append(f"{_pad(level + 2)}<GivenName>{escape_xml(request.first_name)}</GivenName>")
        if request.last_name:
            lines.append(f"{_pad(level + 2)}<Surname>{escape_xml(request.last_name)}</Surname>")
        lines.append(f"{_pad(level + 1)}</PersonName>")
    if request.phone_number:
        lines.append(
            f'{_pad(level + 1)}<Telephone PhoneTechType="{PHONE_TECH_TYPE_VOICE}"'
            f' PhoneNumber="{escape_xml(request.phone_number)}"/>'
        )
    if request.email:
        lines.append(f"{_pad(level + 1)}<Email>{escape_xml(request.email)}</Email>")
    lines.append(f"{pad}</Customer>")
    return lines


def _selection_text(label: str, name: str, code: str | None) -> str:
    if code and code != name:
        return f"{label}: {name} ({code})"
    return f"{label}: {name}"


def _comment_blocks(request: GuestRequest) -> list[tuple[str, str]]:
    """Return (comment name, text) pairs: room, offer, guest message."""
    blocks: list[tuple[str, str]] = []
    if request.room.name:
        blocks.append(
            ("additional info", _selection_text("Room Selection", request.room.name, request.room.code))
        )
    if request.offer.name:
        blocks.append(
            ("additional info", _selection_text("Offer Selection", request.offer.name, request.offer.code))
        )
    if request.comments:
        blocks.append(("customer message", request.comments))
    return blocks


def _comment_lines(request: GuestRequest, level: int) -> list[str]:
    blocks = _comment_blocks(request)
    if not blocks:
        return []

    lines = [f"{_pad(level)}<Comments>"]
    for name, text in blocks:
        lines.append(f'{_pad(level + 1)}<Comment Name="{escape_xml(name)}">')
        lines.append(f"{_pad(level + 2)}<Text>{escape_xml(text)}</Text>")
        lines.append(f"{_pad(level + 1)}</Comment>")
    lines.append(f"{_pad(level)}</Comments>")
    return lines


def render_reservation(request: GuestRequest, hotel: Hotel, level: int = 2) -> str:
    """Render one HotelReservation element for a guest request."""
    p = _pad
    room_type_attr = (
        f' RoomTypeCode="{escape_xml(request.room.code)}"' if request.room.code else ""
    )

    lines = [
        f'{p(level)}<HotelReservation CreateDateTime="{iso_timestamp(request.created_at)}" ResStatus="Requested">',
        f'{p(level + 1)}<UniqueID Type="{RESERVATION_ID_TYPE}" ID="{escape_xml(request.request_id)}"/>',
        f"{p(level + 1)}<RoomStays>",
        f"{p(level + 2)}<RoomStay>",
        f"{p(level + 3)}<RoomTypes>",
        f"{p(level + 4)}<RoomType{room_type_attr}/>",
        f"{p(level + 3)}</RoomTypes>",
        f"{p(level + 3)}<GuestCounts>",
        *_guest_count_lines(request, level + 4),
        f"{p(level + 3)}</GuestCounts>",
        f'{p(level + 3)}<TimeSpan Start="{request.check_in_date.isoformat()}"'
        f' End="{request.check_out_date.isoformat()}"/>',
        f"{p(level + 2)}</RoomStay>",
        f"{p(level + 1)}</RoomStays>",
        f"{p(level + 1)}<ResGuests>",
        f"{p(level + 2)}<ResGuest>",
        f"{p(level + 3)}<Profiles>",
        f"{p(level + 4)}<ProfileInfo>",
        f"{p(level + 5)}<Profile>",
        *_customer_lines(request, level + 6),
        f"{p(level + 5)}</Profile>",
        f"{p(level + 4)}</ProfileInfo>",
        f"{p(level + 3)}</Profiles>",
        f"{p(level + 2)}</ResGuest>",
        f"{p(level + 1)}</ResGuests>",
        f"{p(level + 1)}<ResGlobalInfo>",
        *_comment_lines(request, level + 2),
        f'{p(level + 2)}<BasicPropertyInfo HotelCode="{escape_xml(hotel.hotel_code)}"'
        f' HotelName="{escape_xml(hotel.hotel_name)}"/>',
        f"{p(level + 1)}</ResGlobalInfo>",
        f"{p(level)}</HotelReservation>",
    ]
    return "\n".join(lines)


def render_read_response(requests: Sequence[GuestRequest], hotel: Hotel) -> str:
    """Render an OTA_ResRetrieveRS carrying the given guest requests."""
    header = (
        f'<{READ_RESPONSE_ROOT} xmlns="{OTA_NS}" xmlns:xsi="{XSI_NS}"'
        f' xsi:schemaLocation="{OTA_NS} {READ_RESPONSE_ROOT}.xsd" Version="{OTA_VERSION}">'
    )
    if requests:
        reservations = "\n".join(render_reservation(r, hotel) for r in requests)
        body = f"  <ReservationsList>\n{reservations}\n  </ReservationsList>"
    else:
        body = "  <ReservationsList/>"

    return "\n".join(
        [XML_DECLARATION, header, "  <Success/>", body, f"</{READ_RESPONSE_ROOT}>"]
    )


def render_acknowledge_response(timestamp: str | None = None) -> str:
    """Render a successful OTA_NotifReportRS."""
    timestamp = timestamp or iso_timestamp()
    return "\n".join(
        [
            XML_DECLARATION,
            f'<{ACKNOWLEDGE_RESPONSE_ROOT} xmlns="{OTA_NS}" xmlns:xsi="{XSI_NS}"'
            f' xsi:schemaLocation="{OTA_NS} {ACKNOWLEDGE_RESPONSE_ROOT}.xsd"'
            f' TimeStamp="{escape_xml(timestamp)}" Version="{OTA_VERSION}">',
            "  <Success/>",
            f"</{ACKNOWLEDGE_RESPONSE_ROOT}>",
        ]
    )


def render_ping_response(intersection: Capabilities, echo_data: str) -> str:
    """Render an OTA_PingRS.

    The negotiated intersection goes into the handshake Warning as indented
    JSON. ``echo_data`` is inserted verbatim: no escaping, no trimming, no
    added whitespace.
    """
    intersection_json = json.dumps(intersection.to_dict(), indent=2)
    warning_body = "\n".join(
        "      " + escape(line) for line in intersection_json.splitlines()
    )
    return "\n".join(
        [
            XML_DECLARATION,
            f'<OTA_PingRS xmlns="{OTA_NS}" Version="1.0">',
            "  <Success/>",
            "  <Warnings>",
            '    <Warning Type="11" Status="ALPINEBITS_HANDSHAKE">',
            warning_body,
            "    </Warning>",
            "  </Warnings>",
            f"  <EchoData>{echo_data}</EchoData>",
            "</OTA_PingRS>",
        ]
    )


def render_error_response(
    message: str,
    timestamp: str | None = None,
    root: str = READ_RESPONSE_ROOT,
) -> str:
    """Render a minimal error envelope with one Error element."""
    timestamp = timestamp or iso_timestamp()
    return "\n".join(
        [
            XML_DECLARATION,
            f'<{root} xmlns="{OTA_NS}" TimeStamp="{escape_xml(timestamp)}" Version="{OTA_VERSION}">',
            "  <Errors>",
            f'    <Error Type="3" Code="450">{escape_xml(message)}</Error>',
            "  </Errors>",
            f"</{root}>",
        ]
    )
