"""
FastAPI 应用入口

功能：
1. 路由注册
2. 中间件配置（CORS、Trace ID、请求耗时）
3. 异常处理：AppError / 请求校验错误 / 未处理异常统一转为失败信封
4. 服务容器的构造与关闭（关闭前等待未完成的通知）
5. 健康检查
"""
import logging
import time
import uuid
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from src.core.errors import AppError
from src.services.api.responses import ApiErrors, api_error_from_app_error, handle_api_error
from src.services.api.routers import (
    auth,
    categories,
    comments,
    events,
    match_results,
    tournament_matches,
    tournaments,
)
from src.services.api.schemas.health import HealthResponse, ReadyResponse
from src.services.container import ServiceContainer
from src.shared.config import Settings, get_settings

logger = logging.getLogger(__name__)

SERVICE_NAME = "club-content-api"

# 上下文变量：存储 request_id，可在整个请求链路中访问
request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    """获取当前请求的 Trace ID"""
    return request_id_ctx.get()


def create_app(
    container: Optional[ServiceContainer] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    构造应用

    传入 container 时直接使用（测试），否则在启动时按配置构造，
    两种情况下关闭时都会等待通知并关闭客户端。
    """
    settings = settings or (container.settings if container else get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {settings.app_name} v{settings.app_version} ({settings.environment})")
        if getattr(app.state, "container", None) is None:
            app.state.container = ServiceContainer(settings)
        try:
            yield
        finally:
            logger.info(f"Shutting down {settings.app_name}")
            await app.state.container.aclose()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Club content API",
        docs_url="/docs" if settings.api.enable_docs else None,
        redoc_url="/redoc" if settings.api.enable_docs else None,
        lifespan=lifespan,
    )
    app.state.container = container

    # ============ 中间件 ============

    @app.middleware("http")
    async def trace_id_middleware(request: Request, call_next) -> Response:
        """生成或沿用 X-Request-ID，记录请求耗时并写回响应头"""
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        token = request_id_ctx.set(request_id)
        start_time = time.time()

        try:
            logger.info(
                f"[{request_id}] Request started: {request.method} {request.url.path}",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "client_ip": request.client.host if request.client else "unknown",
                },
            )

            response = await call_next(request)

            duration_ms = int((time.time() - start_time) * 1000)
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time-Ms"] = str(duration_ms)

            logger.info(
                f"[{request_id}] Request completed: {response.status_code} in {duration_ms}ms",
                extra={
                    "request_id": request_id,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                },
            )
            return response

        except Exception as e:
            duration_ms = int((time.time() - start_time) * 1000)
            logger.error(
                f"[{request_id}] Request failed: {e} in {duration_ms}ms",
                extra={"request_id": request_id, "error": str(e), "duration_ms": duration_ms},
                exc_info=True,
            )
            raise

        finally:
            request_id_ctx.reset(token)

    # 跨域配置
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ============ 异常处理 ============

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        logger.warning(f"[{get_request_id()}] {request.method} {request.url.path}: {exc!r}")
        return api_error_from_app_error(exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
            for e in exc.errors()
        ]
        message = errors[0]["msg"] if errors else "Neplatné údaje"
        return ApiErrors.validation_failed(message, {"errors": errors})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"[{get_request_id()}] Unhandled error: {exc}", exc_info=True)
        return handle_api_error(exc)

    # ============ 路由 ============

    for module in (
        auth,
        categories,
        comments,
        events,
        match_results,
        tournament_matches,
        tournaments,
    ):
        app.include_router(module.router)

    # ============ 健康检查 ============

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """健康检查端点"""
        return HealthResponse(version=settings.app_version, service=SERVICE_NAME)

    @app.get("/ready", response_model=ReadyResponse)
    async def readiness_check(request: Request):
        """就绪检查：服务容器已构造且配置了内容仓库令牌"""
        current = request.app.state.container
        checks = {
            "api": "ok",
            "container": "ok" if current is not None else "missing",
            "strapi_token": "ok" if settings.strapi.api_token else "missing",
        }
        status = "ready" if all(v == "ok" for v in checks.values()) else "degraded"
        return ReadyResponse(status=status, version=settings.app_version, checks=checks)

    return app


app = create_app()


# ============ 直接运行 ============

if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        app,
        host=_settings.api.host,
        port=_settings.api.port,
        log_level=_settings.api.log_level,
    )
