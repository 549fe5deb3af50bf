"""
Pod Upload Gateway - Main Application

将文件上传到 Solid POD 并按可见性等级设置访问权限
"""
import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.settings import settings
from services.errors import (
    AuthenticationError,
    ConfigurationError,
    PodGatewayError,
    TransmissionError,
    ValidationError,
)
from services.file_handler_service import file_handler_service
from services.pod_session import PodSession
from app.routers import pod

# 配置日志
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format=settings.log_format
)

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES: dict[type, int] = {
    ValidationError: 400,
    ConfigurationError: 500,
    AuthenticationError: 502,
    TransmissionError: 502,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # 启动
    logger.info("Starting Pod Upload Gateway...")

    # 会话对象只在此创建一次，首次使用时才认证
    app.state.pod_session = PodSession.from_settings(settings)
    logger.info(f"Target POD: {settings.solid_webid}")

    # 启动清理守护进程
    cleanup_task = asyncio.create_task(
        file_handler_service.start_cleanup_daemon(
            interval_seconds=settings.staging_cleanup_interval_seconds,
            max_age_seconds=settings.staging_max_age_seconds
        )
    )

    logger.info(f"Pod Upload Gateway started on {settings.host}:{settings.port}")

    yield

    # 关闭
    logger.info("Shutting down Pod Upload Gateway...")
    cleanup_task.cancel()
    with suppress(asyncio.CancelledError):
        await cleanup_task
    await app.state.pod_session.close()
    logger.info("Pod Upload Gateway stopped")


# 创建 FastAPI 应用
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="上传文件到 Solid POD，并按 public / community / private 等级设置 ACL",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS 中间件
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # 生产环境应该限制
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册路由
app.include_router(pod.router)


@app.exception_handler(PodGatewayError)
async def pod_gateway_error_handler(request: Request, exc: PodGatewayError) -> JSONResponse:
    """将网关错误转换为 ErrorResponse"""
    status_code = next(
        (code for error_type, code in ERROR_STATUS_CODES.items() if isinstance(exc, error_type)),
        500
    )
    if status_code >= 500:
        logger.error(f"{exc.error_code}: {exc.message}")
    else:
        logger.info(f"Rejected request: {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.get("/", tags=["System"])
async def root():
    """根路径 - 系统信息"""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running"
    }


@app.get("/health", tags=["System"])
async def health_check():
    """健康检查"""
    return {
        "status": "healthy",
        "version": settings.app_version
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
