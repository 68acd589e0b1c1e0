"""
television.main
~~~~~~~~~~~~~~~

FastAPI 应用入口 —— 注册路由、挂载中间件、定义生命周期。
"""
from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from television.api import channels, commands
from television.core.config import settings
from television.core.errors import TelevisionError
from television.core.logging import get_logger, setup_logging
from television.core.rate_limit import limiter
from television.db import close_mongo, connect_mongo, get_database
from television.db.kv_store import KeyValueStore, MemoryStore
from television.db.mongo_store import MongoStore
from television.schemas.api_response import ApiResponse
from television.services.television import Television

# 初始化日志系统（必须在其他模块之前）
setup_logging()
logger = get_logger(__name__)


# ── 生命周期 ──────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期钩子，仅在 worker 启动/关闭时各执行一次。"""
    # ── 启动 ──
    store: KeyValueStore
    if settings.STORE_BACKEND == "mongo":
        await connect_mongo()
        store = MongoStore(get_database(), transactional=settings.MONGO_TRANSACTIONS)
    else:
        store = MemoryStore()
    app.state.television = Television(store)
    logger.info(
        "🚀 应用已启动 | env=%s | store=%s | create_policy=%s | log_level=%s",
        settings.ENVIRONMENT,
        settings.STORE_BACKEND,
        settings.CHANNEL_CREATE_POLICY,
        settings.effective_log_level,
    )
    yield
    # ── 关闭 ──
    if settings.STORE_BACKEND == "mongo":
        await close_mongo()
    logger.info("👋 应用已关闭")


# ── 创建 FastAPI 实例 ─────────────────────────────────────────────────

app: FastAPI = FastAPI(
    title=settings.PROJECT_NAME,
    description="频道注册表与观众收看状态服务",
    version=settings.VERSION,
    debug=settings.debug,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# ── CORS 中间件 ───────────────────────────────────────────────────────
if settings.allow_cors_all_origins:
    # dev / test 环境：允许所有来源，方便本地调试
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

# ── 路由挂载 ──────────────────────────────────────────────────────────
app.include_router(commands.router, prefix="/api", tags=["Commands & Queries"])
app.include_router(channels.router, prefix="/api", tags=["Channels & Viewers"])


# ── 异常处理器 ────────────────────────────────────────────────────────

@app.exception_handler(TelevisionError)
async def television_error_handler(request: Request, exc: TelevisionError) -> JSONResponse:
    """业务异常 → 统一的 ApiResponse.fail()，HTTP 状态码与业务码一致。"""
    response = ApiResponse.fail(msg=exc.msg, code=exc.code, data={"kind": exc.kind})
    return JSONResponse(
        status_code=exc.code,
        content=response.model_dump(),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """捕获所有未处理异常，返回统一的 ApiResponse.fail() 格式。"""
    logger.error("未捕获异常: %s %s -> %s", request.method, request.url, exc, exc_info=True)
    # 非 prod 环境返回详细错误信息，prod 环境隐藏内部细节
    detail = str(exc) if not settings.is_prod else "服务器内部错误"
    response = ApiResponse.fail(msg=detail, code=500, data=None)
    return JSONResponse(
        status_code=500,
        content=response.model_dump(),
    )


@app.get("/health", tags=["System"])
async def health_check() -> JSONResponse:
    """验证服务是否正常运行。"""
    return JSONResponse(
        content={
            "status": "ok",
            "environment": settings.ENVIRONMENT,
            "store": settings.STORE_BACKEND,
            "debug": settings.debug,
            "log_level": settings.effective_log_level,
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "television.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.reload,  # 仅 dev 环境开启热重载
        log_level=settings.effective_log_level.lower(),
    )
