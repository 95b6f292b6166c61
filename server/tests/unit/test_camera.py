"""测试 camera.py — 流申请/释放配对、前后切换、权限被拒降级、抓帧。"""

from __future__ import annotations

import io
import re
from unittest.mock import MagicMock, patch

import numpy as np
import pytest
from PIL import Image

from dermascan.capture.camera import CameraCapture
from dermascan.capture.devices import CameraAccessError, FacingMode, OpenCVMediaDevices
from support import FakeMediaDevices


@pytest.fixture
def camera(fake_devices, notices) -> CameraCapture:
    return CameraCapture(fake_devices, notices)


class TestOpen:
    """申请视频流。"""

    def test_defaults_to_rear_camera(self, camera, fake_devices):
        assert camera.open() is True
        assert fake_devices.events == ["start:environment"]
        assert camera.is_active

    def test_permission_denied_is_recoverable(self, notices):
        camera = CameraCapture(FakeMediaDevices(denied=True), notices)
        assert camera.open() is False
        assert camera.available is False
        assert not camera.is_active
        [notice] = notices.drain()
        assert notice.title == "Camera Access Denied"
        assert notice.variant == "destructive"

    def test_reopen_releases_previous_stream(self, camera, fake_devices):
        camera.open()
        camera.open()
        assert fake_devices.events == ["start:environment", "stop:environment", "start:environment"]
        assert len(fake_devices.active_streams()) == 1


class TestSwitchCamera:
    """前后摄像头切换。"""

    def test_stops_before_new_request(self, camera, fake_devices):
        camera.open()
        camera.switch_camera()
        assert fake_devices.events == ["start:environment", "stop:environment", "start:user"]
        assert camera.facing is FacingMode.USER

    def test_never_two_active_streams(self, camera, fake_devices):
        camera.open()
        for _ in range(4):
            camera.switch_camera()
            assert len(fake_devices.active_streams()) == 1
        assert camera.facing is FacingMode.ENVIRONMENT

    def test_toggle_helper(self):
        assert FacingMode.ENVIRONMENT.toggled() is FacingMode.USER
        assert FacingMode.USER.toggled() is FacingMode.ENVIRONMENT


class TestClose:
    """资源释放。"""

    def test_close_stops_all_tracks(self, camera, fake_devices):
        camera.open()
        camera.close()
        assert fake_devices.active_streams() == []
        assert not camera.is_active

    def test_close_is_idempotent(self, camera, fake_devices):
        camera.open()
        camera.close()
        camera.close()
        assert fake_devices.events.count("stop:environment") == 1

    def test_context_manager_releases_on_error(self, fake_devices, notices):
        with pytest.raises(RuntimeError):
            with CameraCapture(fake_devices, notices):
                raise RuntimeError("view crashed")
        assert fake_devices.active_streams() == []


class TestCapture:
    """抓帧为 JPEG。"""

    def test_capture_produces_jpeg(self, fake_devices, notices):
        fake_devices.size = (80, 60)
        with CameraCapture(fake_devices, notices) as camera:
            image = camera.capture()

        assert re.fullmatch(r"capture-\d{13}\.jpg", image.name)
        assert image.content_type == "image/jpeg"
        decoded = Image.open(io.BytesIO(image.data))
        assert decoded.format == "JPEG"
        assert decoded.size == (80, 60)

    def test_capture_closes_view(self, camera, fake_devices):
        camera.open()
        camera.capture()
        assert not camera.is_active
        assert fake_devices.active_streams() == []

    def test_capture_without_stream(self, camera):
        with pytest.raises(CameraAccessError):
            camera.capture()


class TestOpenCVDevices:
    """OpenCV 设备实现（mock VideoCapture）。"""

    def test_facing_maps_to_device_index(self):
        capture = MagicMock()
        capture.isOpened.return_value = True
        capture.read.return_value = (True, np.zeros((4, 6, 3), dtype=np.uint8))
        with patch("dermascan.capture.devices.cv2.VideoCapture", return_value=capture) as vc:
            stream = OpenCVMediaDevices(rear_index=2, front_index=5).get_user_media(FacingMode.USER)

        vc.assert_called_once_with(5)
        assert stream.read_frame().shape == (4, 6, 3)
        stream.stop()
        capture.release.assert_called_once()

    def test_unavailable_device(self):
        capture = MagicMock()
        capture.isOpened.return_value = False
        with patch("dermascan.capture.devices.cv2.VideoCapture", return_value=capture):
            with pytest.raises(CameraAccessError):
                OpenCVMediaDevices().get_user_media(FacingMode.ENVIRONMENT)
        capture.release.assert_called_once()
