"""E2E 测试专用 fixtures — 用 httpx.MockTransport 替换上游模型，使用 TestClient。"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import ExitStack
from pathlib import Path
from typing import Any
from unittest.mock import patch

import httpx
import pytest
from starlette.testclient import TestClient

from dermascan.config import ModelConfig, Settings, load_settings
from dermascan.gateway.model import ModelClient

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


class FakeUpstream:
    """可控的上游模型：记录收到的请求，按设定返回。"""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.body: Any = None

    def reply(self, status_code: int, body: Any = None) -> None:
        self.status_code = status_code
        self.body = body

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.body, str):
            return httpx.Response(self.status_code, text=self.body)
        return httpx.Response(self.status_code, json=self.body)


@pytest.fixture
def e2e_settings() -> Settings:
    """加载 E2E 测试配置。"""
    return load_settings(FIXTURES_DIR / "test_config.toml")


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def make_client(upstream) -> Callable[..., TestClient]:
    """按给定配置创建 app，lifespan 里创建的模型客户端走 FakeUpstream 传输层。"""
    from dermascan.app import create_app

    def _model_client(config: ModelConfig) -> ModelClient:
        return ModelClient(config, transport=httpx.MockTransport(upstream.handler))

    with ExitStack() as stack:
        stack.enter_context(patch("dermascan.app.ModelClient", side_effect=_model_client))

        def _make(settings: Settings, raise_server_exceptions: bool = True) -> TestClient:
            app = create_app(settings)
            return stack.enter_context(
                TestClient(app, raise_server_exceptions=raise_server_exceptions)
            )

        yield _make


@pytest.fixture
def client(make_client, e2e_settings) -> TestClient:
    return make_client(e2e_settings)
