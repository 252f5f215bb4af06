from __future__ import annotations

import base64
import logging
from typing import Any

import httpx

from pageorient.batch.scanner import PageImageSource
from pageorient.exceptions import OrientationRequestError
from pageorient.types import OrientationResponse

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://127.0.0.1:8000"
ORIENTATION_PATH = "/api/ocr/orientation"
HEALTH_PATH = "/api/health"
TIMEOUT_STATUS_CODES = frozenset({504})


def _read_json(response: httpx.Response) -> dict[str, Any] | None:
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


class OrientationClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._http = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def __enter__(self) -> OrientationClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def health(self) -> dict[str, Any]:
        response = self._http.get(HEALTH_PATH)
        response.raise_for_status()
        return response.json()

    def detect(self, image_bytes: bytes) -> OrientationResponse:
        encoded_image = base64.b64encode(image_bytes).decode("ascii")
        try:
            response = self._http.post(ORIENTATION_PATH, json={"imageBase64": encoded_image})
        except httpx.TimeoutException as timeout_error:
            raise OrientationRequestError(
                "Orientation request timed out",
                code="ocr_timeout",
                retryable=True,
            ) from timeout_error
        except httpx.TransportError as transport_error:
            raise OrientationRequestError(
                f"Orientation request failed: network error ({transport_error})",
                code="network_error",
                retryable=True,
            ) from transport_error

        body = _read_json(response)
        if response.is_success and body is not None and body.get("success"):
            return OrientationResponse.from_payload(body)

        fallback_message = f"Orientation request failed (HTTP {response.status_code})"
        if body is not None and isinstance(body.get("message"), str):
            message = f"{fallback_message}: {body['message']}"
        else:
            message = fallback_message

        code = body.get("code") if body is not None else None
        retryable = bool(body.get("retryable")) if body is not None else False
        if code is None and response.status_code in TIMEOUT_STATUS_CODES:
            code, retryable = "ocr_timeout", True

        raise OrientationRequestError(
            message, status=response.status_code, code=code, retryable=retryable
        )


class PageDetector:
    """Renders a page from a source and sends it to the orientation service."""

    def __init__(self, source: PageImageSource, client: OrientationClient) -> None:
        self.source = source
        self.client = client

    def __call__(self, page: int, scale: float) -> OrientationResponse:
        return self.client.detect(self.source.render(page, scale))
