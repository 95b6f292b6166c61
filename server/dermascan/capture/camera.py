"""拍照视图 — 申请/切换/释放摄像头流，抓帧为 JPEG。"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from dermascan.capture.devices import CameraAccessError, FacingMode
from dermascan.capture.image import CapturedImage, encode_frame

if TYPE_CHECKING:
    from dermascan.capture.devices import MediaDevices, MediaStream
    from dermascan.notices import NoticeBoard

logger = logging.getLogger(__name__)


class CameraCapture:
    """同一时刻最多持有一个流；关闭或切换朝向时停止全部轨道。

    用作上下文管理器时，任何退出路径都会释放设备。
    """

    def __init__(
        self,
        devices: MediaDevices,
        notices: NoticeBoard,
        facing: FacingMode = FacingMode.ENVIRONMENT,
        quality: float = 0.95,
    ) -> None:
        self._devices = devices
        self._notices = notices
        self.facing = facing
        self.quality = quality
        self._stream: MediaStream | None = None
        self.available = True

    @property
    def is_active(self) -> bool:
        return self._stream is not None

    def open(self) -> bool:
        """申请当前朝向的流。权限被拒时发出提示并降级为仅文件选择。"""
        self.stop()
        try:
            self._stream = self._devices.get_user_media(self.facing)
        except CameraAccessError as e:
            logger.warning("Camera access error: %s", e)
            self.available = False
            self._notices.error(
                "Camera Access Denied", "Please allow camera access to capture images."
            )
            return False
        self.available = True
        return True

    def stop(self) -> None:
        """停止当前流的全部轨道（幂等）。"""
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.stop()

    def switch_camera(self) -> bool:
        """前后摄像头切换：先释放旧流，再申请新流。"""
        self.stop()
        self.facing = self.facing.toggled()
        return self.open()

    def capture(self) -> CapturedImage:
        """抓取当前帧并关闭视图。"""
        if self._stream is None:
            raise CameraAccessError("Camera stream not active")
        try:
            frame = self._stream.read_frame()
            return encode_frame(frame, self.quality)
        finally:
            self.stop()

    def close(self) -> None:
        self.stop()

    def __enter__(self) -> CameraCapture:
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
