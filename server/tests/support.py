"""测试辅助 — 模型回复样例、假摄像头设备。"""

from __future__ import annotations

from typing import Any

import numpy as np

from dermascan.capture.devices import CameraAccessError, FacingMode, MediaDevices, MediaStream, MediaTrack

ACNE_REPLY = (
    "```json\n"
    '{"disease_name":"Acne","confidence_score":80,"severity":"mild","symptoms":["redness"]}\n'
    "```"
)


def chat_completion(content: Any) -> dict[str, Any]:
    """构造 OpenAI 兼容 chat completion 响应体。"""
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


# ────────────────────── Fake camera ──────────────────────


class FakeTrack(MediaTrack):
    def __init__(self, events: list[str], label: str) -> None:
        self._events = events
        self._label = label
        self._live = True

    def stop(self) -> None:
        if self._live:
            self._live = False
            self._events.append(f"stop:{self._label}")

    @property
    def live(self) -> bool:
        return self._live


class FakeStream(MediaStream):
    def __init__(self, events: list[str], facing: FacingMode, size: tuple[int, int]) -> None:
        self.facing = facing
        self._size = size
        self._tracks = [FakeTrack(events, facing.value)]

    @property
    def tracks(self) -> list[MediaTrack]:
        return list(self._tracks)

    def read_frame(self) -> np.ndarray:
        w, h = self._size
        return np.full((h, w, 3), 128, dtype=np.uint8)


class FakeMediaDevices(MediaDevices):
    """记录 申请/停止 顺序，可模拟权限被拒。"""

    def __init__(self, size: tuple[int, int] = (64, 48), denied: bool = False) -> None:
        self.events: list[str] = []
        self.streams: list[FakeStream] = []
        self.size = size
        self.denied = denied

    def get_user_media(self, facing: FacingMode) -> MediaStream:
        if self.denied:
            raise CameraAccessError("Permission denied")
        self.events.append(f"start:{facing.value}")
        stream = FakeStream(self.events, facing, self.size)
        self.streams.append(stream)
        return stream

    def active_streams(self) -> list[FakeStream]:
        return [s for s in self.streams if any(t.live for t in s.tracks)]


