"""用户流程 — 分析并保存、历史记录、注册/资料。

每个流程在边界处捕获已知错误，记录日志并转成 Notice，不向宿主抛出。
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from supabase import AuthError, PostgrestAPIError, StorageException

from dermascan.capture.image import to_data_url
from dermascan.client.auth import AgeRequirementError, NotAuthenticatedError
from dermascan.client.gateway_client import GatewayRequestError

if TYPE_CHECKING:
    from dermascan.capture.image import CapturedImage
    from dermascan.client.auth import AuthService, UserContext
    from dermascan.client.gateway_client import GatewayClient
    from dermascan.client.store import ProfileStore, ScanRecord, ScanStore
    from dermascan.notices import NoticeBoard

logger = logging.getLogger(__name__)

PERSISTENCE_ERRORS = (StorageException, PostgrestAPIError)


class ScanWorkflow:
    """上传图片 → 网关分析 → 写入历史记录。"""

    def __init__(self, store: ScanStore, gateway: GatewayClient, notices: NoticeBoard) -> None:
        self._store = store
        self._gateway = gateway
        self._notices = notices

    def analyze(self, user: UserContext, image: CapturedImage) -> ScanRecord | None:
        try:
            image_url = self._store.upload_image(user, image)
            result = self._gateway.analyze(to_data_url(image))
            record = self._store.insert_scan(user, image_url, result)
        except (GatewayRequestError, *PERSISTENCE_ERRORS) as e:
            logger.error("Analysis error: %s", e)
            self._notices.error(
                "Analysis Failed",
                str(e) or "Failed to analyze image. Please try again.",
            )
            return None

        self._notices.push(
            "Analysis Complete", "Your skin analysis has been completed successfully."
        )
        return record


class HistoryView:
    def __init__(self, store: ScanStore, notices: NoticeBoard) -> None:
        self._store = store
        self._notices = notices
        self.scans: list[ScanRecord] = []

    def load(self, user: UserContext) -> list[ScanRecord]:
        try:
            self.scans = self._store.list_scans(user)
        except PostgrestAPIError as e:
            logger.error("Failed to load scans for %s: %s", user.user_id, e)
            self._notices.error("Error", "Failed to load scan history")
        return self.scans

    def delete(self, scan_id: str) -> bool:
        try:
            self._store.delete_scan(scan_id)
        except PostgrestAPIError as e:
            logger.error("Failed to delete scan %s: %s", scan_id, e)
            self._notices.error("Error", "Failed to delete scan")
            return False
        self.scans = [scan for scan in self.scans if scan.id != scan_id]
        self._notices.push("Deleted", "Scan deleted successfully")
        return True


class AccountFlow:
    """注册（含 18+ 确认）、登录、补填资料。"""

    def __init__(self, auth: AuthService, profiles: ProfileStore, notices: NoticeBoard) -> None:
        self._auth = auth
        self._profiles = profiles
        self._notices = notices

    def sign_up(self, email: str, password: str, full_name: str, is_adult: bool) -> bool:
        try:
            self._auth.sign_up(email, password, full_name, is_adult)
        except AgeRequirementError as e:
            self._notices.error("Age Verification Required", str(e))
            return False
        except AuthError as e:
            logger.warning("Sign up failed for %s: %s", email, e)
            self._notices.error("Authentication Error", str(e))
            return False
        self._notices.push("Account created!", "Please check your email to verify your account.")
        return True

    def sign_in(self, email: str, password: str) -> UserContext | None:
        try:
            user = self._auth.sign_in(email, password)
        except AuthError as e:
            logger.warning("Sign in failed for %s: %s", email, e)
            self._notices.error("Authentication Error", str(e))
            return None
        self._notices.push("Welcome back!", "Successfully logged in.")
        return user

    def save_details(self, full_name: str, age: int) -> bool:
        try:
            user = self._auth.require_user()
            self._profiles.update_details(user, full_name, age)
        except AgeRequirementError as e:
            self._notices.error("Age Requirement", str(e))
            return False
        except (NotAuthenticatedError, AuthError, PostgrestAPIError) as e:
            logger.error("Failed to save profile details: %s", e)
            self._notices.error("Error", str(e))
            return False
        self._notices.push("Profile Updated", "Your information has been saved successfully.")
        return True
