"""FastAPI 应用入口

创建和配置 FastAPI 应用实例。
"""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from filesearch.api import router
from filesearch.config import settings
from filesearch.middleware import register_error_handlers


def setup_logging():
    """配置应用日志系统

    设置日志格式、级别和处理器。
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    # 设置第三方库的日志级别（避免过多日志）
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    return logging.getLogger(__name__)


logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理

    启动时记录生效的资源上限，关闭时记录日志。搜索服务本身没有需要释放的资源。
    """
    logger.info("Starting file content search service...")
    logger.info(
        f"Search limits: max_results={settings.max_results_ceiling}, "
        f"max_file_size={settings.max_file_size}, "
        f"max_pattern_length={settings.max_pattern_length}, "
        f"timeout={settings.search_timeout}s"
    )
    logger.info("Application startup complete")

    yield

    logger.info("Application shutdown complete")


# 创建 FastAPI 应用实例
app = FastAPI(
    title="File Content Search",
    description="在目录树中按子串或正则表达式搜索文件内容",
    version="0.1.0",
    lifespan=lifespan
)

register_error_handlers(app)

# 配置 CORS
# 在生产环境中，应该通过 CORS_ORIGINS 配置具体的允许源而不是使用 "*"
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list(),
    allow_credentials=True,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=600,
)

app.include_router(router)
