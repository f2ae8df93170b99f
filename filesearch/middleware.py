"""错误响应模块

所有失败都以 ``ErrorResponse``（``{error, timestamp}``）返回：
搜索错误由路由转换，请求体校验失败由异常处理器转换，
其余逃逸出路由的异常由中间件转换为不含细节的 500。
"""

import logging
from typing import Callable

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from filesearch.models import ErrorResponse


logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    """构建统一格式的错误响应"""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(mode='json')
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """请求体不是合法 JSON 或字段类型错误时返回 422

    只在日志中记录出错的字段位置，响应里不回显请求内容。
    """
    fields = [".".join(str(part) for part in error["loc"]) for error in exc.errors()]
    logger.warning(
        f"Invalid request body: {request.method} {request.url.path} - Fields: {', '.join(fields)}",
        extra={"path": request.url.path, "fields": fields}
    )
    return error_response(422, "Invalid request body")


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """兜底错误处理中间件

    捕获路由没有转换的异常，返回 "Internal Server Error"。
    响应中不包含异常细节，避免泄露内部路径等信息。
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(
                f"Unhandled exception: {exc}",
                exc_info=True,
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "client": request.client.host if request.client else None
                }
            )
            return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")


def register_error_handlers(app: FastAPI) -> None:
    """在应用上注册请求校验异常处理器和兜底中间件"""
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_middleware(ErrorHandlingMiddleware)
