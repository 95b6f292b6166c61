"""FastAPI 应用工厂 + lifespan。"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from dermascan.config import Settings, load_settings
from dermascan.gateway.analyzer import AnalysisGateway
from dermascan.gateway.errors import AnalysisError
from dermascan.gateway.model import ModelClient
from dermascan.gateway.schemas import AnalyzeRequest, ErrorResponse, ScanResult

logger = logging.getLogger(__name__)

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        ErrorResponse(error=message).model_dump(),
        status_code=status_code,
        headers=CORS_HEADERS,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """启动/关闭生命周期管理。"""
    settings: Settings = app.state.settings

    # 1. 日志
    logging.basicConfig(
        level=getattr(logging, settings.server.log_level),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    # 2. 模型客户端
    model = ModelClient(settings.model)
    await model.start()
    if not model.is_configured:
        logger.warning("Model API key not configured, analysis requests will fail")

    # 3. Gateway
    app.state.model = model
    app.state.gateway = AnalysisGateway(model)

    yield

    await model.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    """创建 FastAPI 应用。"""
    if settings is None:
        settings = load_settings()

    app = FastAPI(title="DermaScan Analysis Gateway", lifespan=lifespan)
    app.state.settings = settings

    @app.exception_handler(AnalysisError)
    async def analysis_error_handler(request: Request, exc: AnalysisError):
        logger.error("Error in analyze-skin: %s", exc.message)
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_error_handler(request: Request, exc: RequestValidationError):
        logger.warning("Invalid analyze request: %s", exc.errors())
        return _error_response(500, "Invalid request body: image is required")

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unexpected error in analyze-skin")
        return _error_response(500, "Analysis failed")

    @app.options("/analyze-skin")
    async def analyze_preflight():
        return Response(headers=CORS_HEADERS)

    @app.post("/analyze-skin", response_model=ScanResult)
    async def analyze_skin(body: AnalyzeRequest):
        gateway: AnalysisGateway = app.state.gateway
        result = await gateway.analyze(body.image)
        return JSONResponse(result.model_dump(), headers=CORS_HEADERS)

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "model_configured": (
                app.state.model.is_configured if hasattr(app.state, "model") else False
            ),
        }

    return app


def main() -> None:
    """命令行入口：uvicorn 启动网关。"""
    import uvicorn

    settings = load_settings()
    uvicorn.run(create_app(settings), host=settings.server.host, port=settings.server.port)
