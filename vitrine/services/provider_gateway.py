"""HTTP client boundary to the messaging provider (uazapi).

When no base URL is configured the gateway reports ``configured = False`` and
callers switch to the mock payloads built here, so the rest of the system
stays usable without provider credentials.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import quote

import httpx

from vitrine.config import Settings
from vitrine.logging_config import get_logger

logger = get_logger("provider_gateway")

MOCK_QR_PREFIX = "UAZAPI_MOCK_"
STATUS_WAITING_QR = "waiting-qr"
QR_PATHS = ("qr", "qrcode")


class ProviderError(Exception):
    """Provider unreachable or answered with an error status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ProviderUnavailableError(ProviderError):
    """Provider refused to deliver, typically because the device is disconnected."""


@dataclass
class ProviderReply:
    status_code: int
    body: bytes = b""
    content_type: str = "application/json"
    headers: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> dict:
        """Decode the body as a JSON object, or an empty dict when it is not one."""
        if not self.body:
            return {}
        try:
            data = json.loads(self.body)
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    def error_message(self, default: str) -> str:
        data = self.json()
        message = pick_str(data, "message", "error", "detail", "error.message")
        if message:
            return message
        text = self.body.decode("utf-8", errors="replace").strip()
        return text[:300] if text else default


def _lookup(data: Any, path: str) -> Any:
    current = data
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return None
        current = current[part]
    return current


def pick_str(data: Any, *paths: str) -> str:
    """Return the first non-blank string found at any of the dotted paths.

    Numbers are accepted and rendered without a trailing ``.0``.
    """
    for path in paths:
        value = _lookup(data, path)
        if isinstance(value, bool) or value is None:
            continue
        if isinstance(value, str):
            if value.strip():
                return value.strip()
            continue
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            return str(int(value)) if value.is_integer() else repr(value)
    return ""


# Field paths tried in order; providers disagree on naming and nesting
INSTANCE_ID_PATHS = (
    "instanceId",
    "instance.instanceId",
    "instance.id",
    "instance.name",
    "instance",
    "name",
    "id",
)
INSTANCE_TOKEN_PATHS = (
    "token",
    "instanceToken",
    "instance_token",
    "instance.token",
    "instance.instanceToken",
    "instance.instance_token",
)
STATUS_PATHS = ("connect.status", "connect.state", "instance.status", "state")


def extract_instance_credentials(data: dict) -> tuple[str, str]:
    return pick_str(data, *INSTANCE_ID_PATHS), pick_str(data, *INSTANCE_TOKEN_PATHS)


def mock_qr_marker(instance_id: str) -> str:
    return f"{MOCK_QR_PREFIX}{instance_id}"


def mock_connect_payload(instance_id: str) -> dict:
    return {
        "status": STATUS_WAITING_QR,
        "qrcode": mock_qr_marker(instance_id),
        "message": "UAZAPI_BASE not configured; running in mock mode.",
    }


def mock_status_payload(instance_id: str) -> dict:
    return {
        "instance": instance_id,
        "status": STATUS_WAITING_QR,
        "qrcode": mock_qr_marker(instance_id),
        "connect": {"status": STATUS_WAITING_QR},
    }


def mock_qr_payload(instance_id: str) -> dict:
    return {
        "instance": instance_id,
        "qrcode": mock_qr_marker(instance_id),
        "status": STATUS_WAITING_QR,
    }


class ProviderGateway:
    """Thin client over the provider's instance API."""

    def __init__(self, settings: Settings):
        self.base_url = settings.uazapi_base.strip().rstrip("/")
        self.api_key = settings.uazapi_token
        self.auth_header = settings.uazapi_auth_header.strip()
        self.auth_value = settings.uazapi_auth_value
        self.timeout = settings.uazapi_timeout_seconds

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    def _headers(self, with_body: bool) -> dict:
        headers = {"Accept": "application/json"}
        if with_body:
            headers["Content-Type"] = "application/json"
        if self.auth_header:
            value = self.auth_value or ""
            if "%s" in value:
                value = value.replace("%s", self.api_key or "")
            if not value:
                value = self.api_key or ""
            if value:
                headers[self.auth_header] = value
        return headers

    @staticmethod
    def instance_path(instance_id: str, *suffix: str) -> str:
        parts = ["instances", quote(instance_id, safe="")] + list(suffix)
        return "/" + "/".join(parts)

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json_body: Optional[dict] = None,
    ) -> ProviderReply:
        """Perform one provider call. Transport failures raise ProviderError."""
        if not self.configured:
            raise ProviderError("uazapi not configured (set UAZAPI_BASE)")

        url = f"{self.base_url}{path}"
        query = {k: v for k, v in (params or {}).items() if v}
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.request(
                    method,
                    url,
                    params=query or None,
                    json=json_body,
                    headers=self._headers(json_body is not None),
                )
        except httpx.HTTPError as e:
            logger.error(f"Provider transport error: {method} {path}: {e}")
            raise ProviderError(f"provider error: {e}") from e

        logger.info(
            "Provider call",
            extra={"context": {"method": method, "path": path, "status": response.status_code}},
        )
        return ProviderReply(
            status_code=response.status_code,
            body=response.content or b"",
            content_type=response.headers.get("content-type", "application/json"),
        )

    def create_instance(self, name: str) -> ProviderReply:
        return self.request("POST", "/instances", json_body={"name": name})

    def instance_status(self, instance_id: str, token: str = "") -> ProviderReply:
        return self.request("GET", self.instance_path(instance_id, "status"), params={"token": token})

    def instance_qr(self, instance_id: str, token: str = "") -> Optional[ProviderReply]:
        """Try each known QR path and return the first non-empty 2xx reply."""
        for suffix in QR_PATHS:
            try:
                reply = self.request("GET", self.instance_path(instance_id, suffix), params={"token": token})
            except ProviderError:
                continue
            if reply.ok and reply.body.strip():
                return reply
        return None

    def set_webhook(self, instance_id: str, body: dict) -> ProviderReply:
        return self.request("POST", self.instance_path(instance_id, "webhook"), json_body=body)

    def send_text(self, instance_id: str, token: str, to: str, text: str) -> ProviderReply:
        return self.request(
            "POST",
            self.instance_path(instance_id, "send", "text"),
            json_body={"token": token, "to": to, "text": text},
        )
