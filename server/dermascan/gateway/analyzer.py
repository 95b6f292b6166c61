"""分析网关 — base64 图片 → 校验后的 ScanResult 或类型化失败。"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from dermascan.gateway.parsing import parse_model_reply, strip_data_url_prefix

if TYPE_CHECKING:
    from dermascan.gateway.model import ModelClient
    from dermascan.gateway.schemas import ScanResult

logger = logging.getLogger(__name__)


class AnalysisGateway:
    """无状态：每次调用独立完成 请求 → 模型 → 解析。"""

    def __init__(self, model: ModelClient) -> None:
        self.model = model

    async def analyze(self, image: str) -> ScanResult:
        image_base64 = strip_data_url_prefix(image)
        reply = await self.model.complete(image_base64)
        result = parse_model_reply(reply)
        logger.info(
            "Analysis complete: %s (confidence=%s, severity=%s)",
            result.disease_name,
            result.confidence_score,
            result.severity,
        )
        return result
