"""AlpineBits protocol service: handshake, read and acknowledge.

Each operation takes the raw ``request`` XML and returns a ProtocolResult
ready to be sent back. Envelope concerns (authentication, multipart, action
dispatch) stay in the route.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from alpinebridge.alpinebits import codec
from alpinebridge.alpinebits.actions import ProtocolAction
from alpinebridge.domain.capabilities import intersect_capabilities
from alpinebridge.domain.errors import StorageError
from alpinebridge.domain.lifecycle import plan_acknowledge, plan_read
from alpinebridge.infra.store import GuestRequestStore
from alpinebridge.infra.time import iso_timestamp, utc_now
from alpinebridge.observability.logging import get_logger
from alpinebridge.observability.redaction import identifier_prefix, safe_log_context

if TYPE_CHECKING:
    from alpinebridge.api.alpinebits_auth import AlpineBitsContext

logger = get_logger(__name__)

TEXT_MEDIA_TYPE = "text/plain"

INVALID_PING_MESSAGE = "ERROR:invalid OTA_PingRQ format or missing EchoData"
INVALID_READ_MESSAGE = "Invalid OTA_ReadRQ format"
INVALID_ACKNOWLEDGE_MESSAGE = "Invalid OTA_NotifReportRQ format or no request IDs"


@dataclass(frozen=True)
class ProtocolResult:
    status_code: int
    body: str
    media_type: str = codec.XML_MEDIA_TYPE


def _xml_error(status_code: int, message: str, root: str, now: datetime) -> ProtocolResult:
    return ProtocolResult(
        status_code=status_code,
        body=codec.render_error_response(message, iso_timestamp(now), root=root),
    )


def _storage_failure(action: ProtocolAction, root: str, now: datetime) -> ProtocolResult:
    logger.error(
        "alpinebits storage failure",
        extra={"extra_fields": safe_log_context(action=action.message)},
    )
    return _xml_error(500, f"Internal error while processing {action.message}", root, now)


class AlpineBitsService:
    """Serves the three AlpineBits actions against a GuestRequestStore."""

    def __init__(self, store: GuestRequestStore):
        self._store = store

    def handle(
        self,
        action: ProtocolAction,
        xml: str,
        now: datetime | None = None,
        *,
        context: AlpineBitsContext | None = None,
    ) -> ProtocolResult:
        """Dispatch a resolved action to its handler.

        Args:
            action: Resolved protocol action.
            xml: Raw OTA-XML request document.
            now: Timestamp override (tests).
            context: Authenticated envelope (protocol version, client id).
        """
        if context is not None:
            logger.info(
                "alpinebits action dispatched",
                extra={
                    "extra_fields": safe_log_context(
                        action=action.message,
                        protocol_version=context.protocol_version,
                        client_id=identifier_prefix(context.client_id),
                    )
                },
            )
        if action is ProtocolAction.HANDSHAKE:
            return self.handshake(xml)
        if action is ProtocolAction.READ:
            return self.read(xml, now)
        return self.acknowledge(xml, now)

    def handshake(self, xml: str) -> ProtocolResult:
        """Answer an OTA_PingRQ with the negotiated capability intersection.

        Nothing is persisted.
        """
        ping = codec.parse_ping_request(xml)
        if ping is None:
            return ProtocolResult(400, INVALID_PING_MESSAGE, TEXT_MEDIA_TYPE)

        intersection = intersect_capabilities(ping.capabilities)
        logger.info(
            "alpinebits handshake",
            extra={
                "extra_fields": safe_log_context(
                    versions=",".join(v.version for v in intersection.versions),
                )
            },
        )
        return ProtocolResult(200, codec.render_ping_response(intersection, ping.echo_data))

    def read(self, xml: str, now: datetime | None = None) -> ProtocolResult:
        """Deliver the unacknowledged backlog of a hotel.

        Pending requests move to sent; sent requests are delivered again until
        acknowledged.
        """
        now = now or utc_now()
        root = codec.READ_RESPONSE_ROOT

        read_request = codec.parse_read_request(xml)
        if read_request is None:
            return _xml_error(400, INVALID_READ_MESSAGE, root, now)

        try:
            hotel = self._store.get_hotel(read_request.hotel_code)
            if hotel is None:
                return _xml_error(
                    404, f"Hotel code '{read_request.hotel_code}' not found", root, now
                )

            plan = plan_read(self._store.list_unacknowledged(hotel.hotel_code))
            if plan.to_mark_sent:
                self._store.mark_sent(plan.to_mark_sent, now)
        except StorageError:
            return _storage_failure(ProtocolAction.READ, root, now)

        logger.info(
            "alpinebits read served",
            extra={
                "extra_fields": safe_log_context(
                    hotel_code=hotel.hotel_code,
                    delivered=len(plan.response),
                    newly_sent=len(plan.to_mark_sent),
                )
            },
        )
        return ProtocolResult(200, codec.render_read_response(plan.response, hotel))

    def acknowledge(self, xml: str, now: datetime | None = None) -> ProtocolResult:
        """Mark the listed requests acknowledged.

        Unknown or already acknowledged ids are ignored; the PMS still gets a
        success envelope.
        """
        now = now or utc_now()
        root = codec.ACKNOWLEDGE_RESPONSE_ROOT

        ack_request = codec.parse_acknowledge_request(xml)
        if ack_request is None:
            return _xml_error(400, INVALID_ACKNOWLEDGE_MESSAGE, root, now)

        request_ids = plan_acknowledge(ack_request.request_ids)
        try:
            changed = self._store.mark_acknowledged(request_ids, now)
        except StorageError:
            return _storage_failure(ProtocolAction.ACKNOWLEDGE, root, now)

        changed_ids = set(changed)
        ignored = [rid for rid in request_ids if rid not in changed_ids]
        if ignored:
            logger.warning(
                "acknowledged ids not transitioned",
                extra={
                    "extra_fields": safe_log_context(
                        count=len(ignored),
                        first_request_id=identifier_prefix(ignored[0]),
                    )
                },
            )

        logger.info(
            "alpinebits acknowledge processed",
            extra={"extra_fields": safe_log_context(acknowledged=len(changed))},
        )
        return ProtocolResult(200, codec.render_acknowledge_response(iso_timestamp(now)))
