"""共享 fixtures — 测试配置、用户、假摄像头、Supabase mock 等。"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from dermascan.client.auth import UserContext
from dermascan.config import Settings, load_settings
from dermascan.notices import NoticeBoard
from support import FakeMediaDevices

FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ────────────────────── Fixtures ──────────────────────


@pytest.fixture
def test_config() -> Settings:
    """加载测试专用配置。"""
    return load_settings(FIXTURES_DIR / "test_config.toml")


@pytest.fixture
def notices() -> NoticeBoard:
    return NoticeBoard()


@pytest.fixture
def user() -> UserContext:
    return UserContext(user_id="user-123", email="test@example.com")


@pytest.fixture
def fake_devices() -> FakeMediaDevices:
    return FakeMediaDevices()


@pytest.fixture
def model_reply() -> dict[str, Any]:
    """完整的模型 JSON 回复。"""
    return json.loads((FIXTURES_DIR / "model_reply.json").read_text(encoding="utf-8"))


@pytest.fixture
def mock_supabase() -> MagicMock:
    """Mock Supabase Client — table()/storage 链式调用均可配置。"""
    client = MagicMock()
    query = MagicMock()
    for method in ("select", "insert", "update", "delete", "eq", "order", "limit"):
        getattr(query, method).return_value = query
    query.execute.return_value = MagicMock(data=[])
    client.table.return_value = query
    client._query = query

    bucket = MagicMock()
    bucket.get_public_url.return_value = "https://cdn.test/skin-scans/image.jpg"
    client.storage.from_.return_value = bucket
    client._bucket = bucket
    return client
