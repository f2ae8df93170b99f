"""搜索服务模块

组合路径校验、正则校验、文件发现和逐行匹配，执行一次完整的文件内容搜索。
整个请求按顺序处理：先完成文件发现，再逐个扫描文件。
"""

import logging
import os
import re
import stat
import threading
import time
from typing import List, Optional, Tuple

from filesearch.config import settings
from filesearch.discovery import discover_files
from filesearch.matcher import build_matcher, scan_file
from filesearch.models import FileResult, SearchRequest, SearchResponse
from filesearch.security import (
    SecurityError,
    validate_base_path,
    validate_regex_pattern,
)


logger = logging.getLogger(__name__)


class SearchError(Exception):
    """搜索错误基类

    ``status_code`` 是对应的 HTTP 状态码，异常消息可以直接返回给调用方。
    """

    status_code = 500


class SearchValidationError(SearchError):
    """请求参数无效"""

    status_code = 400


class SearchNotFoundError(SearchError):
    """搜索根目录不存在"""

    status_code = 404


class SearchCancelledError(SearchError):
    """客户端取消了搜索"""

    status_code = 499


class SearchTimeoutError(SearchError):
    """搜索超过了墙钟时间预算"""

    status_code = 504


class SearchFailedError(SearchError):
    """搜索过程中发生未预期的错误"""

    status_code = 500


class _Deadline:
    """检查取消标志和超时，在文件之间和目录之间调用"""

    def __init__(self, started: float, timeout: float, cancel_event: Optional[threading.Event]):
        self.expires_at = started + timeout
        self.cancel_event = cancel_event

    def check(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise SearchCancelledError("Search cancelled")
        if time.monotonic() > self.expires_at:
            raise SearchTimeoutError("Search timed out")


def validate_request(request: SearchRequest) -> Tuple[str, Optional[re.Pattern]]:
    """校验搜索请求

    不访问文件系统。

    Returns:
        tuple: (规范化后的根路径, 编译好的正则表达式；非正则模式为 None)

    Raises:
        SearchValidationError: 缺少必填字段、路径非法或正则不安全
    """
    if not request.pattern or not request.base_path:
        logger.warning(
            "Invalid search request - missing fields",
            extra={"pattern": bool(request.pattern), "base_path": bool(request.base_path)}
        )
        raise SearchValidationError("pattern and basePath are required")

    compiled = None
    try:
        root = validate_base_path(request.base_path)
        if request.use_regex:
            compiled = validate_regex_pattern(request.pattern, request.case_sensitive)
    except SecurityError as e:
        raise SearchValidationError(str(e)) from e

    return root, compiled


def _verify_root(base_path: str) -> None:
    try:
        mode = os.stat(base_path).st_mode
    except (OSError, ValueError) as e:
        logger.warning(
            f"Search path does not exist: {base_path}",
            extra={"base_path": base_path, "error": str(e)}
        )
        raise SearchNotFoundError("basePath does not exist") from e

    if not stat.S_ISDIR(mode):
        logger.warning(
            f"Search path is not a directory: {base_path}",
            extra={"base_path": base_path}
        )
        raise SearchValidationError("basePath must be a directory")


def execute_search(
    request: SearchRequest,
    cancel_event: Optional[threading.Event] = None,
    timeout: Optional[float] = None,
) -> SearchResponse:
    """执行文件内容搜索

    步骤：校验 → 确认根目录 → 发现候选文件 → 逐个扫描 → 汇总。

    每个文件的扫描上限是全局剩余配额
    ``min(系统上限, max_results) - 已有匹配数``；剩余配额耗尽而仍有未扫描的
    候选文件时停止扫描并将 ``truncated`` 置为 True。单个文件因自身上限停止
    不会单独导致截断。

    Args:
        request: 搜索请求
        cancel_event: 可选的取消标志，在目录之间和文件之间检查
        timeout: 墙钟超时（秒），默认使用 ``settings.search_timeout``

    Returns:
        SearchResponse: 搜索结果

    Raises:
        SearchValidationError: 请求无效或根路径不是目录
        SearchNotFoundError: 根路径不存在
        SearchCancelledError: 搜索被取消
        SearchTimeoutError: 搜索超时
        SearchFailedError: 其他未预期的错误，已累积的部分结果被丢弃
    """
    started = time.monotonic()

    logger.debug(
        "Content search request",
        extra={
            "pattern": request.pattern,
            "base_path": request.base_path,
            "recursive": request.recursive,
            "use_regex": request.use_regex,
            "case_sensitive": request.case_sensitive,
            "name_pattern": request.name_pattern,
            "max_results": request.max_results,
        }
    )

    root, compiled = validate_request(request)
    _verify_root(root)

    deadline = _Deadline(
        started,
        timeout if timeout is not None else settings.search_timeout,
        cancel_event
    )
    quota = min(settings.max_results_ceiling, request.max_results)

    try:
        candidates = discover_files(
            root,
            recursive=request.recursive,
            name_pattern=request.name_pattern,
            sort_entries=settings.discovery_sort_entries,
            interrupt=deadline.check,
        )

        logger.info(
            f"Searching {len(candidates)} files under {request.base_path}",
            extra={"file_count": len(candidates), "pattern": request.pattern, "base_path": request.base_path}
        )

        matcher = build_matcher(
            request.pattern,
            use_regex=request.use_regex,
            case_sensitive=request.case_sensitive,
            compiled=compiled,
        )

        results: List[FileResult] = []
        total_matches = 0
        truncated = False

        for file_path in candidates:
            deadline.check()

            remaining = quota - total_matches
            if remaining <= 0:
                truncated = True
                break

            scan = scan_file(file_path, matcher, remaining)
            if scan.matches:
                results.append(FileResult(path=file_path, matches=scan.matches))
                total_matches += len(scan.matches)

    except SearchError:
        raise
    except Exception as e:
        logger.error(
            f"Content search failed: {e}",
            exc_info=True,
            extra={"base_path": request.base_path}
        )
        raise SearchFailedError("Search failed") from e

    duration_millis = int((time.monotonic() - started) * 1000)

    logger.info(
        f"Content search completed: {total_matches} matches in {len(results)} files",
        extra={
            "total_matches": total_matches,
            "file_count": len(results),
            "duration": duration_millis,
            "truncated": truncated,
        }
    )

    return SearchResponse(
        results=results,
        total_matches=total_matches,
        truncated=truncated,
        duration_millis=duration_millis,
    )
