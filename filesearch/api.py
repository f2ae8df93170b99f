"""API 路由模块

定义文件内容搜索的 RESTful API 端点。
"""

import asyncio
import logging
import threading
import time

from fastapi import APIRouter, Request
from starlette.concurrency import run_in_threadpool

from filesearch.middleware import error_response
from filesearch.models import ErrorResponse, SearchRequest, SearchResponse
from filesearch.search_service import SearchError, execute_search


# 创建日志记录器
logger = logging.getLogger(__name__)

# 创建 API 路由器
router = APIRouter()

# 检查客户端是否断开的间隔（秒）
DISCONNECT_POLL_INTERVAL = 0.1

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "请求参数无效"},
    404: {"model": ErrorResponse, "description": "搜索根目录不存在"},
    422: {"model": ErrorResponse, "description": "请求体不是合法 JSON 或字段类型错误"},
    499: {"model": ErrorResponse, "description": "客户端取消了搜索"},
    500: {"model": ErrorResponse, "description": "搜索失败"},
    504: {"model": ErrorResponse, "description": "搜索超时"},
}


async def _watch_disconnect(request: Request, cancel_event: threading.Event) -> None:
    """客户端断开时设置取消标志"""
    while not cancel_event.is_set():
        if await request.is_disconnected():
            logger.info(f"Client disconnected, cancelling search: {request.url.path}")
            cancel_event.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_INTERVAL)


@router.post(
    "/api/files/search",
    response_model=SearchResponse,
    responses=_ERROR_RESPONSES,
)
async def search_files(body: SearchRequest, request: Request):
    """文件内容搜索端点

    在 ``basePath`` 下查找包含 ``pattern`` 的文件行。
    搜索在线程池中执行；客户端断开连接时搜索会在下一个文件之前中止。

    Args:
        body: 搜索请求
        request: FastAPI Request 对象，用于检测客户端断开

    Returns:
        SearchResponse: 搜索结果；出错时返回 ErrorResponse 和对应状态码
    """
    client_host = request.client.host if request.client else "unknown"
    logger.info(
        f"Search request from {client_host}: basePath={body.base_path}",
        extra={"client": client_host, "base_path": body.base_path, "use_regex": body.use_regex}
    )

    started = time.monotonic()
    cancel_event = threading.Event()
    watcher = asyncio.create_task(_watch_disconnect(request, cancel_event))

    try:
        return await run_in_threadpool(execute_search, body, cancel_event)
    except SearchError as e:
        logger.info(
            f"Search request rejected - Status: {e.status_code} - {e} - "
            f"Duration: {time.monotonic() - started:.3f}s",
            extra={"client": client_host, "status_code": e.status_code}
        )
        return error_response(e.status_code, str(e))
    finally:
        watcher.cancel()
