"""Tests for the AlpineBits service against the in-memory store."""

from datetime import timedelta
from unittest.mock import patch

from lxml import etree

from alpinebridge.api.alpinebits_auth import AlpineBitsContext
from alpinebridge.alpinebits.actions import ProtocolAction
from alpinebridge.alpinebits.codec import OTA_NS
from alpinebridge.domain.ingestion import ingest_submission
from alpinebridge.domain.models import RequestStatus
from alpinebridge.observability.redaction import identifier_prefix
from alpinebridge.services.alpinebits_service import AlpineBitsService

from .helpers import (
    T0,
    TEST_HOTEL_CODE,
    capability_document,
    make_guest_request,
    notif_report_xml,
    ping_xml,
    ping_xml_for,
    read_xml,
    valid_submission,
)


def _delivered_ids(body: str) -> list[str]:
    root = etree.fromstring(body.encode("utf-8"))
    return [u.get("ID") for u in root.iter(f"{{{OTA_NS}}}UniqueID")]


def _error_text(body: str) -> str:
    root = etree.fromstring(body.encode("utf-8"))
    return root.findtext(f".//{{{OTA_NS}}}Error")


class TestHandshake:
    def test_success(self, store):
        result = AlpineBitsService(store).handshake(
            ping_xml_for(capability_document({"action": "action_OTA_Read"}))
        )
        assert result.status_code == 200
        assert result.media_type.startswith("application/xml")
        assert "ALPINEBITS_HANDSHAKE" in result.body

    def test_invalid_ping_is_plain_text(self, store):
        result = AlpineBitsService(store).handshake(ping_xml("not json"))
        assert result.status_code == 400
        assert result.body == "ERROR:invalid OTA_PingRQ format or missing EchoData"
        assert result.media_type == "text/plain"

    def test_handshake_touches_no_storage(self, store):
        store.fail_on.update({"get_hotel", "list_unacknowledged", "mark_sent"})
        result = AlpineBitsService(store).handshake(ping_xml('{"versions": []}'))
        assert result.status_code == 200


class TestRead:
    def test_invalid_read(self, store):
        result = AlpineBitsService(store).read("<OTA_ReadRQ/>", T0)
        assert result.status_code == 400
        assert _error_text(result.body) == "Invalid OTA_ReadRQ format"

    def test_unknown_hotel(self, store):
        result = AlpineBitsService(store).read(read_xml("ghost"), T0)
        assert result.status_code == 404
        assert _error_text(result.body) == "Hotel code 'ghost' not found"

    def test_pending_becomes_sent(self, store):
        store.insert_guest_request(make_guest_request(request_id="GR_1"))

        result = AlpineBitsService(store).read(read_xml(), T0)

        assert result.status_code == 200
        assert _delivered_ids(result.body) == ["GR_1"]
        assert store.requests["GR_1"].status is RequestStatus.SENT
        assert store.requests["GR_1"].sent_at == T0

    def test_backlog_stable_across_reads(self, store):
        store.insert_guest_request(make_guest_request(request_id="GR_old", created_at=T0))
        store.insert_guest_request(
            make_guest_request(request_id="GR_new", created_at=T0 + timedelta(hours=1))
        )
        service = AlpineBitsService(store)

        first = service.read(read_xml(), T0 + timedelta(hours=2))
        second = service.read(read_xml(), T0 + timedelta(hours=3))

        assert _delivered_ids(first.body) == ["GR_new", "GR_old"]
        assert _delivered_ids(second.body) == _delivered_ids(first.body)
        # sent_at is set on the first delivery only
        assert store.requests["GR_old"].sent_at == T0 + timedelta(hours=2)

    def test_other_hotels_not_delivered(self, store):
        store.insert_guest_request(make_guest_request(request_id="GR_other", hotel_code="other"))
        result = AlpineBitsService(store).read(read_xml(), T0)
        assert _delivered_ids(result.body) == []

    def test_storage_failure(self, store):
        store.fail_on.add("list_unacknowledged")
        result = AlpineBitsService(store).read(read_xml(), T0)
        assert result.status_code == 500
        assert _error_text(result.body) == "Internal error while processing OTA_Read"


class TestAcknowledge:
    def test_invalid_request(self, store):
        result = AlpineBitsService(store).acknowledge(notif_report_xml(), T0)
        assert result.status_code == 400
        assert _error_text(result.body) == "Invalid OTA_NotifReportRQ format or no request IDs"

    def test_marks_acknowledged(self, store):
        store.insert_guest_request(make_guest_request(request_id="GR_1", status=RequestStatus.SENT))

        result = AlpineBitsService(store).acknowledge(notif_report_xml("GR_1"), T0)

        assert result.status_code == 200
        assert "<Success/>" in result.body
        assert store.requests["GR_1"].status is RequestStatus.ACKNOWLEDGED
        assert store.requests["GR_1"].acknowledged_at == T0

    def test_unknown_ids_still_succeed(self, store):
        result = AlpineBitsService(store).acknowledge(notif_report_xml("GR_nope"), T0)
        assert result.status_code == 200
        assert "<Success/>" in result.body

    def test_repeat_acknowledge_keeps_first_timestamp(self, store):
        store.insert_guest_request(make_guest_request(request_id="GR_1"))
        service = AlpineBitsService(store)

        service.acknowledge(notif_report_xml("GR_1"), T0)
        service.acknowledge(notif_report_xml("GR_1"), T0 + timedelta(days=1))

        assert store.requests["GR_1"].acknowledged_at == T0

    def test_storage_failure(self, store):
        store.fail_on.add("mark_acknowledged")
        result = AlpineBitsService(store).acknowledge(notif_report_xml("GR_1"), T0)
        assert result.status_code == 500
        assert etree.QName(etree.fromstring(result.body.encode())).localname == "OTA_NotifReportRS"


class TestDispatchContext:
    def test_context_logged_with_action(self, store):
        context = AlpineBitsContext(
            protocol_version="2024-10", client_id="pms-client-1", username="pms-user"
        )
        with patch("alpinebridge.services.alpinebits_service.logger") as log:
            AlpineBitsService(store).handle(ProtocolAction.READ, read_xml(), T0, context=context)

        fields = log.info.call_args_list[0].kwargs["extra"]["extra_fields"]
        assert log.info.call_args_list[0].args[0] == "alpinebits action dispatched"
        assert fields["action"] == "OTA_Read"
        assert fields["protocol_version"] == "2024-10"
        assert fields["client_id"] == identifier_prefix("pms-client-1")

    def test_without_context_nothing_dispatched_is_logged(self, store):
        with patch("alpinebridge.services.alpinebits_service.logger") as log:
            AlpineBitsService(store).handle(ProtocolAction.READ, read_xml(), T0)

        messages = [c.args[0] for c in log.info.call_args_list]
        assert "alpinebits action dispatched" not in messages


class TestFullScenario:
    def test_submit_read_read_acknowledge_read(self, store):
        service = AlpineBitsService(store)
        rid = ingest_submission(store, TEST_HOTEL_CODE, valid_submission(), now=T0)

        first = service.handle(ProtocolAction.READ, read_xml())
        assert _delivered_ids(first.body) == [rid]
        assert store.requests[rid].status is RequestStatus.SENT

        second = service.handle(ProtocolAction.READ, read_xml())
        assert _delivered_ids(second.body) == [rid]

        ack = service.handle(ProtocolAction.ACKNOWLEDGE, notif_report_xml(rid))
        assert ack.status_code == 200
        assert store.requests[rid].status is RequestStatus.ACKNOWLEDGED

        third = service.handle(ProtocolAction.READ, read_xml())
        assert _delivered_ids(third.body) == []

        assert [event for request_id, event in store.logs if request_id == rid] == [
            "submitted",
            "sent",
            "acknowledged",
        ]
