"""分析网关 HTTP 客户端。"""

from __future__ import annotations

import logging

import httpx

from dermascan.gateway.schemas import ScanResult

logger = logging.getLogger(__name__)


class GatewayRequestError(RuntimeError):
    """网关返回非 2xx 或请求失败。status 为 None 表示传输层错误。"""

    def __init__(self, status: int | None, message: str) -> None:
        self.status = status
        self.message = message
        super().__init__(message)


class GatewayClient:
    def __init__(self, url: str, api_key: str = "", client: httpx.Client | None = None) -> None:
        self.url = url
        self._api_key = api_key
        self._client = client or httpx.Client(timeout=httpx.Timeout(None))

    def close(self) -> None:
        self._client.close()

    def _headers(self) -> dict[str, str]:
        if not self._api_key:
            return {}
        return {"Authorization": f"Bearer {self._api_key}", "apikey": self._api_key}

    def analyze(self, image_data_url: str) -> ScanResult:
        try:
            resp = self._client.post(self.url, json={"image": image_data_url}, headers=self._headers())
        except httpx.HTTPError as e:
            raise GatewayRequestError(None, f"Analysis request failed: {e}") from e

        if not resp.is_success:
            try:
                body = resp.json()
            except ValueError:
                body = None
            message = body.get("error", "") if isinstance(body, dict) else resp.text
            logger.warning("Gateway returned %d: %s", resp.status_code, message)
            raise GatewayRequestError(resp.status_code, message or f"Gateway error: {resp.status_code}")

        try:
            return ScanResult(**resp.json())
        except (ValueError, TypeError) as e:
            # ValueError 同时覆盖非 JSON 响应与 pydantic ValidationError
            logger.warning("Gateway returned an unexpected body: %s", resp.text[:200])
            raise GatewayRequestError(resp.status_code, "Invalid analysis response from gateway") from e
