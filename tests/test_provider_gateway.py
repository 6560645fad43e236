from unittest.mock import MagicMock, patch

import httpx
import pytest

from vitrine.config import Settings
from vitrine.services.provider_gateway import (
    ProviderError,
    ProviderGateway,
    ProviderReply,
    extract_instance_credentials,
    pick_str,
)


def _gateway(**overrides):
    values = {"uazapi_base": "https://api.uazapi.test/", "uazapi_token": "secret"}
    values.update(overrides)
    return ProviderGateway(Settings(_env_file=None, **values))


def _response(status_code=200, content=b"{}", content_type="application/json"):
    response = MagicMock()
    response.status_code = status_code
    response.content = content
    response.headers = {"content-type": content_type}
    return response


class TestPickStr:
    def test_flat_keys(self):
        assert pick_str({"instanceId": "abc"}, "instanceId") == "abc"

    def test_nested_keys(self):
        data = {"instance": {"id": "loja-1", "token": "t0k"}}
        assert extract_instance_credentials(data) == ("loja-1", "t0k")

    def test_first_non_blank_wins(self):
        data = {"token": " ", "instanceToken": "real"}
        assert pick_str(data, "token", "instanceToken") == "real"

    def test_numbers_rendered_without_decimal(self):
        assert pick_str({"id": 42.0}, "id") == "42"
        assert pick_str({"id": 7}, "id") == "7"

    def test_instance_object_is_not_an_id(self):
        data = {"instance": {"name": "loja"}, "token": "t"}
        assert extract_instance_credentials(data) == ("loja", "t")

    def test_missing_everywhere(self):
        assert pick_str({"a": {"b": None}}, "a.b", "c") == ""


class TestProviderReply:
    def test_error_message_from_json(self):
        reply = ProviderReply(status_code=500, body=b'{"error": "device offline"}')
        assert reply.error_message("fallback") == "device offline"

    def test_error_message_from_text(self):
        reply = ProviderReply(status_code=502, body=b"Bad Gateway")
        assert reply.error_message("fallback") == "Bad Gateway"

    def test_error_message_default(self):
        assert ProviderReply(status_code=500).error_message("fallback") == "fallback"

    def test_json_non_object(self):
        assert ProviderReply(status_code=200, body=b"[1, 2]").json() == {}


class TestProviderGateway:
    def test_unconfigured(self):
        gateway = ProviderGateway(Settings(_env_file=None, uazapi_base=""))
        assert gateway.configured is False
        with pytest.raises(ProviderError):
            gateway.request("GET", "/instances")

    def test_auth_header_template(self):
        headers = _gateway()._headers(with_body=False)
        assert headers["Authorization"] == "Bearer secret"

    def test_auth_header_raw_key(self):
        headers = _gateway(uazapi_auth_header="apikey", uazapi_auth_value="")._headers(with_body=True)
        assert headers["apikey"] == "secret"
        assert headers["Content-Type"] == "application/json"

    def test_instance_path_quotes_id(self):
        assert ProviderGateway.instance_path("a/b", "status") == "/instances/a%2Fb/status"

    @patch("vitrine.services.provider_gateway.httpx.Client")
    def test_send_text_posts_payload(self, mock_client_class):
        mock_client = MagicMock()
        mock_client.request.return_value = _response(200, b'{"ok": true}')
        mock_client_class.return_value.__enter__.return_value = mock_client

        reply = _gateway().send_text("loja-1", "tok", "5511999999999", "oi")

        assert reply.ok
        args, kwargs = mock_client.request.call_args
        assert args == ("POST", "https://api.uazapi.test/instances/loja-1/send/text")
        assert kwargs["json"] == {"token": "tok", "to": "5511999999999", "text": "oi"}

    @patch("vitrine.services.provider_gateway.httpx.Client")
    def test_transport_error_raises_provider_error(self, mock_client_class):
        mock_client = MagicMock()
        mock_client.request.side_effect = httpx.ConnectError("refused")
        mock_client_class.return_value.__enter__.return_value = mock_client

        with pytest.raises(ProviderError):
            _gateway().create_instance("loja")

    @patch("vitrine.services.provider_gateway.httpx.Client")
    def test_qr_falls_through_to_second_path(self, mock_client_class):
        mock_client = MagicMock()
        mock_client.request.side_effect = [
            _response(404, b'{"error": "not found"}'),
            _response(200, b'{"qrcode": "data:image/png;base64,AAA"}'),
        ]
        mock_client_class.return_value.__enter__.return_value = mock_client

        reply = _gateway().instance_qr("loja-1", "tok")

        assert reply.json()["qrcode"].startswith("data:image/png")
        urls = [call.args[1] for call in mock_client.request.call_args_list]
        assert urls == [
            "https://api.uazapi.test/instances/loja-1/qr",
            "https://api.uazapi.test/instances/loja-1/qrcode",
        ]

    @patch("vitrine.services.provider_gateway.httpx.Client")
    def test_qr_exhausted_returns_none(self, mock_client_class):
        mock_client = MagicMock()
        mock_client.request.side_effect = [_response(200, b""), httpx.ReadTimeout("slow")]
        mock_client_class.return_value.__enter__.return_value = mock_client

        assert _gateway().instance_qr("loja-1") is None
