"""图片获取与编码 — 文件选择、帧 JPEG 压缩、data URL。"""

from __future__ import annotations

import base64
import io
import mimetypes
import time
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image


class UnsupportedImageError(ValueError):
    """选择的文件不是 image/* 类型。"""


@dataclass(frozen=True)
class CapturedImage:
    name: str
    data: bytes
    content_type: str


def load_image_file(path: Path) -> CapturedImage:
    """文件选择路径：接受任意 image/* 类型，不做尺寸校验。"""
    content_type, _ = mimetypes.guess_type(path.name)
    if not content_type or not content_type.startswith("image/"):
        raise UnsupportedImageError(f"Not an image file: {path.name}")
    return CapturedImage(name=path.name, data=path.read_bytes(), content_type=content_type)


def encode_frame(frame: np.ndarray, quality: float = 0.95) -> CapturedImage:
    """将 RGB 帧按原始分辨率绘制到离屏画布并压缩为 JPEG。

    quality 取 0-1，与浏览器 toBlob 的参数一致。
    """
    surface = Image.fromarray(frame.astype(np.uint8)).convert("RGB")
    buf = io.BytesIO()
    surface.save(buf, format="JPEG", quality=round(quality * 100))
    name = f"capture-{int(time.time() * 1000)}.jpg"
    return CapturedImage(name=name, data=buf.getvalue(), content_type="image/jpeg")


def to_data_url(image: CapturedImage) -> str:
    """编码为 `data:<mime>;base64,<payload>`。"""
    payload = base64.b64encode(image.data).decode("ascii")
    return f"data:{image.content_type};base64,{payload}"
