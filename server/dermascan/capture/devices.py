"""摄像头设备抽象 — 媒体流/轨道协议 + OpenCV 实现。"""

from __future__ import annotations

import enum
import logging
from abc import ABC, abstractmethod

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class FacingMode(str, enum.Enum):
    USER = "user"
    ENVIRONMENT = "environment"

    def toggled(self) -> FacingMode:
        return FacingMode.USER if self is FacingMode.ENVIRONMENT else FacingMode.ENVIRONMENT


class CameraAccessError(RuntimeError):
    """权限被拒或设备不可用。"""


class MediaTrack(ABC):
    @abstractmethod
    def stop(self) -> None: ...  # pragma: no cover

    @property
    @abstractmethod
    def live(self) -> bool: ...  # pragma: no cover


class MediaStream(ABC):
    """一次 get_user_media 得到的视频流。"""

    @property
    @abstractmethod
    def tracks(self) -> list[MediaTrack]: ...  # pragma: no cover

    @abstractmethod
    def read_frame(self) -> np.ndarray:
        """读取当前帧，RGB uint8，形状为流的原始分辨率。"""
        ...  # pragma: no cover

    def stop(self) -> None:
        """停止全部轨道。"""
        for track in self.tracks:
            track.stop()


class MediaDevices(ABC):
    @abstractmethod
    def get_user_media(self, facing: FacingMode) -> MediaStream:
        """按朝向申请视频流，失败抛 CameraAccessError。"""
        ...  # pragma: no cover


# ────────────────────── OpenCV ──────────────────────


class OpenCVTrack(MediaTrack):
    def __init__(self, capture: cv2.VideoCapture) -> None:
        self._capture = capture

    def stop(self) -> None:
        if self._capture.isOpened():
            self._capture.release()

    @property
    def live(self) -> bool:
        return self._capture.isOpened()


class OpenCVStream(MediaStream):
    def __init__(self, capture: cv2.VideoCapture) -> None:
        self._capture = capture
        self._track = OpenCVTrack(capture)

    @property
    def tracks(self) -> list[MediaTrack]:
        return [self._track]

    def read_frame(self) -> np.ndarray:
        ok, frame = self._capture.read()
        if not ok:
            raise CameraAccessError("Failed to read frame from camera")
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)


class OpenCVMediaDevices(MediaDevices):
    """朝向 → 设备序号映射，后置默认 0，前置默认 1。"""

    def __init__(self, rear_index: int = 0, front_index: int = 1) -> None:
        self._indexes = {FacingMode.ENVIRONMENT: rear_index, FacingMode.USER: front_index}

    def get_user_media(self, facing: FacingMode) -> MediaStream:
        index = self._indexes[facing]
        capture = cv2.VideoCapture(index)
        if not capture.isOpened():
            capture.release()
            raise CameraAccessError(f"Camera {index} ({facing.value}) unavailable")
        logger.info("Camera stream opened: device %d (%s)", index, facing.value)
        return OpenCVStream(capture)
