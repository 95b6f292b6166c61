"""网关请求/响应模型 — Pydantic。"""

from __future__ import annotations

from pydantic import BaseModel, Field


class AnalyzeRequest(BaseModel):
    image: str  # base64，可带 data URL 前缀


class ScanResult(BaseModel):
    disease_name: str
    confidence_score: int | float
    severity: str
    symptoms: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    food_recommendations: list[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str
