"""模型回复解析 — 去 data URL 前缀、去代码围栏、JSON 解析与字段校验。

全部为纯函数，不依赖网络。
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from dermascan.gateway.errors import ReplyParseError, ReplyValidationError
from dermascan.gateway.schemas import ScanResult

logger = logging.getLogger(__name__)

_DATA_URL_PREFIX = re.compile(r"^data:image/\w+;base64,")
_JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)\s*```")
_ANY_FENCE = re.compile(r"```\s*([\s\S]*?)\s*```")

REQUIRED_FIELDS = ("disease_name", "confidence_score", "severity")
LIST_FIELDS = ("symptoms", "recommendations", "food_recommendations")


def strip_data_url_prefix(image: str) -> str:
    """去掉 `data:image/<fmt>;base64,` 前缀（幂等）。"""
    return _DATA_URL_PREFIX.sub("", image, count=1)


def strip_code_fence(text: str) -> str:
    """若回复被 ``` 围栏包裹（可带 json 标签），取出围栏内文本，只处理一次。"""
    match = _JSON_FENCE.search(text) or _ANY_FENCE.search(text)
    return match.group(1) if match else text


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def extract_json(text: str) -> Any:
    """text → JSON 对象，失败抛 ReplyParseError。NaN / Infinity 按非法 JSON 处理。"""
    try:
        return json.loads(strip_code_fence(text).strip(), parse_constant=_reject_constant)
    except ValueError as e:
        logger.error("JSON parse error: %s; content: %s", e, text)
        raise ReplyParseError() from e


def validate_scan_result(payload: Any) -> ScanResult:
    """校验必填字段并补全缺省数组。

    必填字段必须存在且为真值，否则整体失败，不返回部分结果。
    """
    if not isinstance(payload, dict):
        raise ReplyValidationError()
    if not all(payload.get(name) for name in REQUIRED_FIELDS):
        missing = [name for name in REQUIRED_FIELDS if not payload.get(name)]
        logger.warning("Model reply missing required fields: %s", missing)
        raise ReplyValidationError()

    data = dict(payload)
    for name in LIST_FIELDS:
        data[name] = data.get(name) or []

    try:
        return ScanResult(**data)
    except ValidationError as e:
        logger.warning("Model reply has wrong field types: %s", e)
        raise ReplyValidationError() from e


def parse_model_reply(text: str) -> ScanResult:
    """模型文本回复 → ScanResult。"""
    return validate_scan_result(extract_json(text))
