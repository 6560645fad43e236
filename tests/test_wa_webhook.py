from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import httpx
import pytest
from sqlalchemy.exc import OperationalError

from vitrine.services.tenant_service import ANONYMOUS_TENANT, Tenant
from vitrine.services.webhook_forwarder import (
    ForwardContext,
    build_forward_headers,
    build_forward_url,
    forward_event,
    log_webhook_event,
    resolve_forward_context,
)

PAYLOAD = b'{"event": "messages", "data": {"text": "oi"}}'


def _known_instance_db():
    db = MagicMock()
    db.query.return_value.filter.return_value.first.return_value = SimpleNamespace(
        instance_id="loja-1", token="inst-token", org_id=7, flow_id=3
    )
    return db


class TestBuildForwardUrl:
    @pytest.mark.parametrize(
        "base,expected",
        [
            ("http://n8n:5678/webhook", "http://n8n:5678/webhook/loja-1"),
            ("http://n8n:5678/webhook/", "http://n8n:5678/webhook/loja-1"),
            ("http://n8n:5678/webhook/abc-123", "http://n8n:5678/webhook/abc-123"),
            ("http://n8n:5678/webhook-test/abc-123", "http://n8n:5678/webhook-test/abc-123"),
            ("https://agent.example.com/hooks", "https://agent.example.com/hooks/loja-1"),
        ],
    )
    def test_concrete_path_used_as_is(self, base, expected):
        assert build_forward_url(base, "loja-1") == expected

    def test_instance_id_is_quoted(self):
        assert build_forward_url("http://agent/hooks", "a b/c") == "http://agent/hooks/a%20b%2Fc"


class TestForwardHeaders:
    def test_headers_carry_tenant(self):
        context = ForwardContext(instance_id="loja-1", token="inst-token", tenant=Tenant(7, 3))
        headers = build_forward_headers(context, "application/json; charset=utf-8")
        assert headers["X-Instance-ID"] == "loja-1"
        assert headers["X-Instance-Token"] == "inst-token"
        assert headers["X-Org-ID"] == "7"
        assert headers["X-Flow-ID"] == "3"
        assert headers["Content-Type"] == "application/json; charset=utf-8"

    def test_no_token_header_for_unknown_instance(self):
        context = ForwardContext(instance_id="x", token="", tenant=ANONYMOUS_TENANT)
        headers = build_forward_headers(context)
        assert "X-Instance-Token" not in headers
        assert headers["X-Org-ID"] == "0"
        assert headers["Content-Type"] == "application/json"


class TestResolveForwardContext:
    def test_known_instance(self):
        context = resolve_forward_context(_known_instance_db(), "loja-1")
        assert context.tenant == Tenant(org_id=7, flow_id=3)
        assert context.token == "inst-token"

    def test_unknown_instance_is_anonymous(self):
        db = MagicMock()
        db.query.return_value.filter.return_value.first.return_value = None
        context = resolve_forward_context(db, "ghost")
        assert context.tenant == ANONYMOUS_TENANT
        assert context.token == ""

    def test_lookup_failure_is_anonymous(self):
        db = MagicMock()
        db.query.side_effect = OperationalError("SELECT", {}, Exception("db down"))
        assert resolve_forward_context(db, "loja-1").tenant == ANONYMOUS_TENANT


class TestLogWebhookEvent:
    def test_appends_raw_payload(self):
        db = MagicMock()
        assert log_webhook_event(db, "loja-1", PAYLOAD) is True
        row = db.add.call_args.args[0]
        assert row.payload == PAYLOAD
        assert row.instance_id == "loja-1"
        assert row.source == "uazapi"
        db.commit.assert_called_once()

    def test_failure_is_swallowed(self):
        db = MagicMock()
        db.commit.side_effect = OperationalError("INSERT", {}, Exception("db down"))
        assert log_webhook_event(db, "loja-1", PAYLOAD) is False
        db.rollback.assert_called_once()


class TestForwardEvent:
    @patch("vitrine.services.webhook_forwarder.httpx.Client")
    def test_forward_success(self, mock_client_class):
        mock_client = MagicMock()
        mock_client.post.return_value = MagicMock(status_code=200)
        mock_client_class.return_value.__enter__.return_value = mock_client
        context = ForwardContext(instance_id="loja-1", token="t", tenant=Tenant(7, 3))

        assert forward_event("http://n8n:5678/webhook", context, PAYLOAD) is True
        args, kwargs = mock_client.post.call_args
        assert args[0] == "http://n8n:5678/webhook/loja-1"
        assert kwargs["content"] == PAYLOAD

    @patch("vitrine.services.webhook_forwarder.httpx.Client")
    def test_unreachable_agent_returns_false(self, mock_client_class):
        mock_client = MagicMock()
        mock_client.post.side_effect = httpx.ConnectError("connection refused")
        mock_client_class.return_value.__enter__.return_value = mock_client
        context = ForwardContext(instance_id="loja-1", token="", tenant=ANONYMOUS_TENANT)

        assert forward_event("http://n8n:5678/webhook", context, PAYLOAD) is False

    @patch("vitrine.services.webhook_forwarder.httpx.Client")
    def test_agent_error_status_returns_false(self, mock_client_class):
        mock_client = MagicMock()
        mock_client.post.return_value = MagicMock(status_code=500, text="boom")
        mock_client_class.return_value.__enter__.return_value = mock_client
        context = ForwardContext(instance_id="loja-1", token="", tenant=ANONYMOUS_TENANT)

        assert forward_event("http://n8n:5678/webhook", context, PAYLOAD) is False


class TestWebhookEndpoint:
    @patch("vitrine.routers.wa_webhook.forward_event")
    def test_known_instance_returns_202(self, mock_forward, client, api_db):
        api_db.query.return_value.filter.return_value.first.return_value = SimpleNamespace(
            instance_id="loja-1", token="inst-token", org_id=7, flow_id=3
        )

        response = client.post(
            "/webhooks/wa/loja-1", content=PAYLOAD, headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 202
        assert response.text == "queued"
        api_db.add.assert_called_once()
        args = mock_forward.call_args.args
        assert args[1].tenant == Tenant(7, 3)
        assert args[1].token == "inst-token"
        assert args[2] == PAYLOAD
        assert args[3] == "application/json"

    @patch("vitrine.routers.wa_webhook.forward_event")
    def test_unknown_instance_returns_202(self, mock_forward, client):
        response = client.post("/webhooks/wa/ghost", content=PAYLOAD)

        assert response.status_code == 202
        assert mock_forward.call_args.args[1].tenant == ANONYMOUS_TENANT

    @patch("vitrine.services.webhook_forwarder.httpx.Client")
    def test_unreachable_forward_target_returns_202(self, mock_client_class, client):
        mock_client = MagicMock()
        mock_client.post.side_effect = httpx.ConnectError("connection refused")
        mock_client_class.return_value.__enter__.return_value = mock_client

        response = client.post("/webhooks/wa/loja-1", content=PAYLOAD)

        assert response.status_code == 202
        mock_client.post.assert_called_once()

    @patch("vitrine.routers.wa_webhook.forward_event")
    def test_audit_failure_still_returns_202(self, mock_forward, client, api_db):
        api_db.commit.side_effect = OperationalError("INSERT", {}, Exception("db down"))

        response = client.post("/webhooks/wa/loja-1", content=PAYLOAD)

        assert response.status_code == 202
        mock_forward.assert_called_once()

    @patch("vitrine.routers.wa_webhook.forward_event")
    def test_blank_instance_rejected_before_side_effects(self, mock_forward, client, api_db):
        response = client.post("/webhooks/wa/%20", content=PAYLOAD)

        assert response.status_code == 400
        api_db.add.assert_not_called()
        mock_forward.assert_not_called()
