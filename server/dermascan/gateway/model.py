"""模型客户端 — OpenAI 兼容 /chat/completions 多模态调用。"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from dermascan.gateway.errors import (
    EmptyReplyError,
    GatewayConfigError,
    RateLimitedError,
    ServiceUnavailableError,
    UpstreamError,
)

if TYPE_CHECKING:
    from dermascan.config import ModelConfig

logger = logging.getLogger(__name__)

SUPPORTED_CONDITIONS: tuple[str, ...] = (
    "Acne (various types)",
    "Eczema/Atopic Dermatitis",
    "Psoriasis",
    "Rosacea",
    "Melanoma/Skin Cancer (urgent referral needed)",
    "Contact Dermatitis",
    "Fungal Infections (Ringworm, Candidiasis)",
    "Vitiligo",
    "Seborrheic Dermatitis",
    "Hives/Urticaria",
    "Warts",
    "Folliculitis",
    "Keratosis Pilaris",
)

_RESPONSE_FORMAT = """{
  "disease_name": "Specific condition name",
  "confidence_score": 85,
  "severity": "moderate",
  "symptoms": ["symptom1", "symptom2", "symptom3"],
  "recommendations": ["recommendation1", "recommendation2", "recommendation3"],
  "food_recommendations": ["food1", "food2", "food3"]
}"""

SYSTEM_PROMPT = (
    "You are an expert dermatology AI assistant. Analyze skin condition images with "
    "high accuracy and provide detailed medical information.\n\n"
    "CRITICAL ANALYSIS REQUIREMENTS:\n"
    "- Provide highly accurate disease identification based on visual characteristics\n"
    "- Assess confidence score (0-100) based on image quality and clarity of symptoms\n"
    "- Determine severity: mild, moderate, or severe\n"
    "- List specific visible symptoms\n"
    "- Provide evidence-based treatment recommendations\n"
    "- Suggest dietary/nutritional support when relevant\n\n"
    f"RESPONSE FORMAT (JSON only):\n{_RESPONSE_FORMAT}\n\n"
    "SUPPORTED CONDITIONS (but not limited to):\n"
    + "\n".join(f"- {name}" for name in SUPPORTED_CONDITIONS)
    + "\n\nAlways recommend consulting a dermatologist for proper diagnosis and treatment."
)

USER_INSTRUCTION = (
    "Analyze this skin condition image and provide a detailed assessment. "
    "Return ONLY valid JSON with no additional text."
)


class ModelClient:
    """托管多模态模型客户端，单次请求，不重试。"""

    def __init__(
        self, config: ModelConfig, transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def start(self) -> None:
        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=httpx.Timeout(self.config.request_timeout),
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    def build_messages(self, image_base64: str) -> list[dict[str, Any]]:
        """组装 system + user（文本指令 + 内联图片）。"""
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": USER_INSTRUCTION},
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:image/jpeg;base64,{image_base64}"},
                    },
                ],
            },
        ]

    async def complete(self, image_base64: str) -> str:
        """调用 /chat/completions，返回模型文本回复。

        429 / 402 / 其他非 2xx 分别映射为不同异常。
        """
        if not self.is_configured:
            raise GatewayConfigError()
        if not self._client:
            raise RuntimeError("Model client not started")

        payload: dict[str, Any] = {
            "model": self.config.model,
            "messages": self.build_messages(image_base64),
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
        }
        headers = {"Authorization": f"Bearer {self.config.api_key}"}

        try:
            resp = await self._client.post("/chat/completions", json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Model request failed: %s", e)
            raise UpstreamError(message=f"AI Gateway request failed: {e}") from e

        if not 200 <= resp.status_code < 300:
            logger.error("Model gateway error: %d %s", resp.status_code, resp.text)
            if resp.status_code == 429:
                raise RateLimitedError()
            if resp.status_code == 402:
                raise ServiceUnavailableError()
            raise UpstreamError(resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            logger.error("Model response is not JSON: %s", resp.text[:200])
            raise UpstreamError(message="AI Gateway returned a non-JSON response") from e
        logger.debug("Model response: %s", data)
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        if not content or not isinstance(content, str):
            raise EmptyReplyError()
        return content
