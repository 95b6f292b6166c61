"""配置管理 — Pydantic Settings 从 TOML 加载。"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel
from pydantic_settings import BaseSettings

_DEFAULT_TOML = Path(__file__).resolve().parent.parent / "config" / "default.toml"


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class ModelConfig(BaseModel):
    base_url: str = "https://ai.gateway.lovable.dev/v1"
    api_key: str = ""
    model: str = "google/gemini-2.5-flash"
    temperature: float = 0.3
    max_tokens: int = 1500
    # None = 不设客户端超时，交给宿主平台
    request_timeout: float | None = None


class SupabaseConfig(BaseModel):
    url: str = "http://localhost:54321"
    key: str = ""
    bucket: str = "skin-scans"
    scans_table: str = "skin_scans"
    profiles_table: str = "profiles"
    email_redirect_to: str = ""


class GatewayClientConfig(BaseModel):
    url: str = "http://localhost:8000/analyze-skin"


class CaptureConfig(BaseModel):
    default_facing: Literal["user", "environment"] = "environment"
    jpeg_quality: float = 0.95
    rear_device_index: int = 0
    front_device_index: int = 1


class Settings(BaseSettings):
    server: ServerConfig = ServerConfig()
    model: ModelConfig = ModelConfig()
    supabase: SupabaseConfig = SupabaseConfig()
    gateway_client: GatewayClientConfig = GatewayClientConfig()
    capture: CaptureConfig = CaptureConfig()

    model_config = {"env_prefix": "DERMASCAN_", "env_nested_delimiter": "__"}


def load_settings(toml_path: Path = _DEFAULT_TOML) -> Settings:
    """从 TOML 文件加载配置，环境变量可覆盖。"""
    import sys

    if sys.version_info >= (3, 11):
        import tomllib
    else:
        import tomli as tomllib

    if toml_path.exists():
        with open(toml_path, "rb") as f:
            data = tomllib.load(f)
        return Settings(**data)
    return Settings()
