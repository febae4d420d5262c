"""应用入口：负责创建 FastAPI 实例并绑定生命周期事件。"""

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.packages import get_active_package
from app.packages.drive.middleware.request_id import RequestIdMiddleware

package = get_active_package()
package.setup_logging()
settings = package.get_settings()
logger = package.logger

app = FastAPI(title=settings.project_name, debug=settings.debug)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(HTTPException, package.http_exception_handler)
app.add_exception_handler(RequestValidationError, package.validation_exception_handler)
app.add_exception_handler(Exception, package.generic_exception_handler)


@app.on_event("startup")
async def startup_event() -> None:
    """初始化数据库与对象存储，确认服务可用后输出成功日志。"""
    package.startup()
    logger.info("SUCCESS - Application running at http://127.0.0.1:%s", settings.app_port)


@app.on_event("shutdown")
async def shutdown_event() -> None:
    package.shutdown()
    logger.info("Application shutdown complete")


@app.get("/health")
async def health_check() -> dict:
    """提供健康检查接口，便于编排器与监控系统探活。"""
    return {"success": True, "status": "healthy"}


app.include_router(package.api_router, prefix=settings.api_prefix)
