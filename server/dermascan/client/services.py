"""客户端服务装配 — 从 Settings 构建 Supabase 客户端与各流程。"""

from __future__ import annotations

from dataclasses import dataclass, field

from supabase import create_client

from dermascan.capture.camera import CameraCapture
from dermascan.capture.devices import FacingMode, MediaDevices, OpenCVMediaDevices
from dermascan.client.auth import AuthService
from dermascan.client.gateway_client import GatewayClient
from dermascan.client.store import ProfileStore, ScanStore
from dermascan.client.workflows import AccountFlow, HistoryView, ScanWorkflow
from dermascan.config import Settings
from dermascan.notices import NoticeBoard


@dataclass
class ClientServices:
    settings: Settings
    auth: AuthService
    scans: ScanStore
    profiles: ProfileStore
    gateway: GatewayClient
    notices: NoticeBoard = field(default_factory=NoticeBoard)

    def scan_workflow(self) -> ScanWorkflow:
        return ScanWorkflow(self.scans, self.gateway, self.notices)

    def history(self) -> HistoryView:
        return HistoryView(self.scans, self.notices)

    def account(self) -> AccountFlow:
        return AccountFlow(self.auth, self.profiles, self.notices)

    def camera(self, devices: MediaDevices | None = None) -> CameraCapture:
        cfg = self.settings.capture
        if devices is None:
            devices = OpenCVMediaDevices(cfg.rear_device_index, cfg.front_device_index)
        return CameraCapture(
            devices, self.notices, FacingMode(cfg.default_facing), cfg.jpeg_quality
        )

    def close(self) -> None:
        self.gateway.close()


def build_client_services(settings: Settings) -> ClientServices:
    sb = settings.supabase
    client = create_client(sb.url, sb.key)
    return ClientServices(
        settings=settings,
        auth=AuthService(client, sb.email_redirect_to),
        scans=ScanStore(client, sb.bucket, sb.scans_table),
        profiles=ProfileStore(client, sb.profiles_table),
        gateway=GatewayClient(settings.gateway_client.url, sb.key),
    )
