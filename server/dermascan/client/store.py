"""扫描记录与个人资料持久化 — Supabase Storage + Postgrest。"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, field_validator

from dermascan.client.auth import ADULT_AGE, AgeRequirementError
from dermascan.gateway.parsing import LIST_FIELDS
from dermascan.gateway.schemas import ScanResult

if TYPE_CHECKING:
    from supabase import Client

    from dermascan.capture.image import CapturedImage
    from dermascan.client.auth import UserContext

logger = logging.getLogger(__name__)


class ScanRecord(ScanResult):
    id: str
    user_id: str
    image_url: str
    created_at: datetime

    @field_validator(*LIST_FIELDS, mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        return value or []


class Profile(BaseModel):
    id: str
    full_name: str | None = None
    age: int | None = None
    is_adult: bool = False


class ScanStore:
    """用户作用域的扫描记录：图片上传、记录增删查。"""

    def __init__(self, client: Client, bucket: str = "skin-scans", table: str = "skin_scans") -> None:
        self._client = client
        self.bucket = bucket
        self.table = table

    def upload_image(self, user: UserContext, image: CapturedImage) -> str:
        """上传到 `<user_id>/<epoch ms>-<name>`，返回公开 URL。"""
        path = f"{user.user_id}/{int(time.time() * 1000)}-{image.name}"
        bucket = self._client.storage.from_(self.bucket)
        bucket.upload(path, image.data, {"content-type": image.content_type})
        logger.info("Uploaded scan image %s", path)
        return bucket.get_public_url(path)

    def insert_scan(self, user: UserContext, image_url: str, result: ScanResult) -> ScanRecord:
        row = {"user_id": user.user_id, "image_url": image_url, **result.model_dump()}
        resp = self._client.table(self.table).insert(row).execute()
        return ScanRecord(**resp.data[0])

    def list_scans(self, user: UserContext) -> list[ScanRecord]:
        """当前用户的全部记录，新的在前。"""
        resp = (
            self._client.table(self.table)
            .select("*")
            .eq("user_id", user.user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [ScanRecord(**row) for row in resp.data or []]

    def delete_scan(self, scan_id: str) -> None:
        self._client.table(self.table).delete().eq("id", scan_id).execute()
        logger.info("Deleted scan %s", scan_id)


class ProfileStore:
    def __init__(self, client: Client, table: str = "profiles") -> None:
        self._client = client
        self.table = table

    def get(self, user: UserContext) -> Profile | None:
        resp = self._client.table(self.table).select("*").eq("id", user.user_id).limit(1).execute()
        return Profile(**resp.data[0]) if resp.data else None

    def needs_details(self, user: UserContext) -> bool:
        """资料中还没有年龄则需要补填。"""
        profile = self.get(user)
        return profile is None or not profile.age

    def update_details(self, user: UserContext, full_name: str, age: int) -> None:
        if age < ADULT_AGE:
            raise AgeRequirementError("You must be 18 or older to use this service.")
        self._client.table(self.table).update(
            {"full_name": full_name, "age": age, "is_adult": age >= ADULT_AGE}
        ).eq("id", user.user_id).execute()
