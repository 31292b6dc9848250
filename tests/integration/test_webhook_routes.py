"""Integration tests for webhook API endpoints."""

import json
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

WEBHOOK_URL = "/api/webhooks/paydunya"
AUTH_HEADERS = {"PAYDUNYA-MASTER-KEY": "test-master-key"}


def _response(data) -> MagicMock:
    response = MagicMock()
    response.data = data
    return response


def _notification(order_id: str, status: str = "completed", token: str = "T1") -> dict:
    return {
        "response_code": "00",
        "response_text": "Transaction Found",
        "invoice": {"token": token, "status": status, "total_amount": 150},
        "custom_data": {"order_id": order_id},
    }


@pytest.fixture
def processing_order(sample_order: dict) -> dict:
    return {**sample_order, "payment_status": "processing", "paydunya_token": "T1", "payment_method": "wave"}


def _mock_lookup(mock_supabase: MagicMock, order: dict | None) -> MagicMock:
    select = mock_supabase.table.return_value.select.return_value
    select.eq.return_value.eq.return_value.maybe_single.return_value.execute.return_value = _response(order)
    return select


class TestPayDunyaWebhookAuth:
    """Authentication of POST /api/webhooks/paydunya."""

    def test_returns_401_without_master_key(self, client: TestClient, mock_supabase: MagicMock) -> None:
        """Test that the body is not processed without the header."""
        response = client.post(WEBHOOK_URL, json=_notification("ORD-1"))

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Missing authentication header"}
        mock_supabase.table.assert_not_called()

    def test_returns_401_for_wrong_master_key(self, client: TestClient, mock_supabase: MagicMock) -> None:
        response = client.post(
            WEBHOOK_URL,
            json=_notification("ORD-1"),
            headers={"PAYDUNYA-MASTER-KEY": "guessed-key"},
        )

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Invalid signature"}
        mock_supabase.table.assert_not_called()

    def test_wrong_key_is_rejected_before_body_parsing(self, client: TestClient) -> None:
        """Test that a malformed body with a bad key yields 401, not 400."""
        response = client.post(
            WEBHOOK_URL,
            content=b"not json",
            headers={"PAYDUNYA-MASTER-KEY": "guessed-key", "Content-Type": "application/json"},
        )

        assert response.status_code == 401


class TestPayDunyaWebhook:
    """Tests for POST /api/webhooks/paydunya endpoint."""

    def test_completed_notification_pays_order(
        self,
        client: TestClient,
        mock_supabase: MagicMock,
        processing_order: dict,
    ) -> None:
        """Test that a completed notification confirms the order and its transaction."""
        select = _mock_lookup(mock_supabase, processing_order)
        update = mock_supabase.table.return_value.update
        update.return_value.eq.return_value.is_.return_value.execute.return_value = _response(
            [{**processing_order, "payment_status": "completed", "status": "confirmed"}]
        )
        update.return_value.eq.return_value.eq.return_value.execute.return_value = _response(
            [{"id": "TXN-1", "status": "completed"}]
        )
        notification = _notification(processing_order["id"])

        response = client.post(WEBHOOK_URL, json=notification, headers=AUTH_HEADERS)

        assert response.status_code == 200
        assert response.json() == {"success": True}
        select.eq.assert_called_once_with("id", processing_order["id"])
        select.eq.return_value.eq.assert_called_once_with("paydunya_token", "T1")

        order_changes, transaction_changes = (c[0][0] for c in update.call_args_list)
        assert order_changes["payment_status"] == "completed"
        assert order_changes["status"] == "confirmed"
        assert order_changes["paid_at"] is not None
        assert transaction_changes["status"] == "completed"
        assert transaction_changes["paydunya_response"] == notification

    def test_failed_notification_keeps_order_pending(
        self,
        client: TestClient,
        mock_supabase: MagicMock,
        processing_order: dict,
    ) -> None:
        _mock_lookup(mock_supabase, processing_order)
        update = mock_supabase.table.return_value.update
        update.return_value.eq.return_value.neq.return_value.execute.return_value = _response(
            [{**processing_order, "payment_status": "failed"}]
        )
        update.return_value.eq.return_value.eq.return_value.neq.return_value.execute.return_value = _response(
            [{"id": "TXN-1", "status": "failed"}]
        )

        response = client.post(WEBHOOK_URL, json=_notification(processing_order["id"], "failed"), headers=AUTH_HEADERS)

        assert response.status_code == 200
        order_changes = update.call_args_list[0][0][0]
        assert order_changes == {
            "payment_status": "failed",
            "status": "pending",
            "updated_at": order_changes["updated_at"],
        }

    def test_returns_400_for_malformed_body(self, client: TestClient) -> None:
        response = client.post(
            WEBHOOK_URL,
            content=b"{not json",
            headers={**AUTH_HEADERS, "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Missing required data"}

    def test_returns_400_without_order_id(self, client: TestClient, mock_supabase: MagicMock) -> None:
        notification = _notification("ORD-1")
        del notification["custom_data"]

        response = client.post(WEBHOOK_URL, json=notification, headers=AUTH_HEADERS)

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required data"
        mock_supabase.table.assert_not_called()

    def test_returns_400_without_token(self, client: TestClient) -> None:
        notification = _notification("ORD-1")
        del notification["invoice"]["token"]

        response = client.post(WEBHOOK_URL, json=notification, headers=AUTH_HEADERS)

        assert response.status_code == 400

    def test_returns_404_for_unknown_order_token_pair(
        self,
        client: TestClient,
        mock_supabase: MagicMock,
        processing_order: dict,
    ) -> None:
        """Test that a token from another order does not match."""
        _mock_lookup(mock_supabase, None)

        response = client.post(
            WEBHOOK_URL,
            json=_notification(processing_order["id"], token="T-OTHER"),
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Order not found"}
        mock_supabase.table.return_value.update.assert_not_called()

    def test_processing_failure_is_acknowledged(
        self,
        client: TestClient,
        mock_supabase: MagicMock,
        processing_order: dict,
    ) -> None:
        """Test that errors after authentication answer 200 so PayDunya stops retrying."""
        _mock_lookup(mock_supabase, processing_order)
        mock_supabase.table.return_value.update.side_effect = RuntimeError("database unavailable")

        response = client.post(WEBHOOK_URL, json=_notification(processing_order["id"]), headers=AUTH_HEADERS)

        assert response.status_code == 200
        assert response.json() == {"success": False, "error": "Internal error processing webhook"}

    def test_duplicate_notification_is_acknowledged(
        self,
        client: TestClient,
        mock_supabase: MagicMock,
        processing_order: dict,
    ) -> None:
        """Test that a replayed completion writes nothing to the paid order."""
        paid = {
            **processing_order,
            "payment_status": "completed",
            "status": "shipped",
            "paid_at": "2026-10-18T09:05:00+00:00",
        }
        select = _mock_lookup(mock_supabase, paid)
        select.eq.return_value.maybe_single.return_value.execute.return_value = _response(paid)
        update = mock_supabase.table.return_value.update
        update.return_value.eq.return_value.is_.return_value.execute.return_value = _response([])
        update.return_value.eq.return_value.eq.return_value.execute.return_value = _response([{"id": "TXN-1"}])

        body = json.dumps(_notification(paid["id"])).encode()
        first = client.post(WEBHOOK_URL, content=body, headers={**AUTH_HEADERS, "Content-Type": "application/json"})
        second = client.post(WEBHOOK_URL, content=body, headers={**AUTH_HEADERS, "Content-Type": "application/json"})

        assert first.json() == second.json() == {"success": True}
        update.return_value.eq.return_value.is_.assert_called_with("paid_at", "null")
        update.return_value.eq.return_value.execute.assert_not_called()
        order_updates = [c[0][0] for c in update.call_args_list if "paid_at" in c[0][0]]
        assert len(order_updates) == 2

    def test_malformed_amount_does_not_block_reconciliation(
        self,
        client: TestClient,
        mock_supabase: MagicMock,
        processing_order: dict,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test that an unparseable amount is logged and the status still applies."""
        _mock_lookup(mock_supabase, processing_order)
        update = mock_supabase.table.return_value.update
        update.return_value.eq.return_value.is_.return_value.execute.return_value = _response(
            [{**processing_order, "payment_status": "completed", "status": "confirmed"}]
        )
        update.return_value.eq.return_value.eq.return_value.execute.return_value = _response([{"id": "TXN-1"}])
        notification = _notification(processing_order["id"])
        notification["invoice"]["total_amount"] = "150 FCFA"

        response = client.post(WEBHOOK_URL, json=notification, headers=AUTH_HEADERS)

        assert response.status_code == 200
        assert response.json() == {"success": True}
        order_changes = update.call_args_list[0][0][0]
        assert order_changes["payment_status"] == "completed"
        assert "Amount mismatch" in caplog.text

    def test_numeric_order_id_is_looked_up_as_text(
        self,
        client: TestClient,
        mock_supabase: MagicMock,
    ) -> None:
        select = _mock_lookup(mock_supabase, None)
        notification = _notification("ORD-1")
        notification["custom_data"]["order_id"] = 12345

        response = client.post(WEBHOOK_URL, json=notification, headers=AUTH_HEADERS)

        assert response.status_code == 404
        select.eq.assert_called_once_with("id", "12345")
