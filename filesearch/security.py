"""安全模块

提供搜索请求的路径校验和正则表达式校验。
两类校验都不访问文件系统，失败时在任何 I/O 之前短路返回。
"""

import logging
import os
import re
from pathlib import Path
from typing import Optional

from filesearch.config import settings


logger = logging.getLogger(__name__)


# 捕获组数量达到该值即视为危险
MAX_CAPTURING_GROUPS = 5

# 转义序列（\+、\\ 等）整体作为一个字面字符消耗掉；其余命中表示两个重复量词之间
# 只有空白或右括号，例如 a**、(a+)+、a{2}{3}、(\\+)+
_REPETITION_TOKENS = re.compile(r"\\.|[*+}][\s)]*[*+{]", re.DOTALL)


def _has_stacked_repetition(pattern: str) -> bool:
    return any(
        not token.group().startswith("\\")
        for token in _REPETITION_TOKENS.finditer(pattern)
    )


class SecurityError(Exception):
    """安全错误异常类

    用于表示安全验证失败的情况。``reason`` 是稳定的机器可读原因码，
    异常消息是可以直接返回给调用方的说明。
    """

    reason = "security_error"

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        if reason is not None:
            self.reason = reason


class PathValidationError(SecurityError):
    """搜索根路径校验失败"""

    TRAVERSAL_DETECTED = "traversal_detected"
    NOT_ABSOLUTE = "not_absolute"


class PatternValidationError(SecurityError):
    """正则表达式校验失败"""

    TOO_LONG = "too_long"
    INVALID_SYNTAX = "invalid_syntax"
    POTENTIALLY_UNSAFE = "potentially_unsafe"


def validate_base_path(base_path: str) -> str:
    """校验搜索根路径，防止路径遍历

    先规范化路径（合并 ``.`` 和 ``..`` 段），再检查：
    规范化后仍含有 ``..`` 段则视为遍历；不是绝对路径则拒绝。
    此处不检查路径是否存在。

    Args:
        base_path: 请求中的根路径

    Returns:
        str: 规范化后的绝对路径

    Raises:
        PathValidationError: 路径包含遍历段或不是绝对路径
    """
    normalized = os.path.normpath(base_path)
    path = Path(normalized)

    if ".." in path.parts:
        logger.warning(
            f"Path traversal attempt detected: {base_path}",
            extra={"requested_path": base_path, "normalized_path": normalized}
        )
        raise PathValidationError(
            "Path traversal not allowed",
            PathValidationError.TRAVERSAL_DETECTED
        )

    if not path.is_absolute():
        logger.warning(
            f"Relative search path rejected: {base_path}",
            extra={"requested_path": base_path}
        )
        raise PathValidationError(
            "Path must be absolute",
            PathValidationError.NOT_ABSOLUTE
        )

    return normalized


def validate_regex_pattern(pattern: str, case_sensitive: bool = False) -> re.Pattern:
    """校验并编译正则表达式，防止 ReDoS

    依次检查长度、语法和两条结构启发式规则：
    重复量词相邻堆叠，以及捕获组数量过多。
    启发式规则只能拦截常见的灾难性回溯形态，不能证明安全。

    Args:
        pattern: 正则表达式
        case_sensitive: 是否区分大小写

    Returns:
        Pattern: 编译好的正则表达式

    Raises:
        PatternValidationError: 过长、语法错误或结构危险
    """
    if len(pattern) > settings.max_pattern_length:
        logger.warning(
            f"Regex pattern too long: {len(pattern)} characters "
            f"(max: {settings.max_pattern_length})"
        )
        raise PatternValidationError(
            "Pattern too long",
            PatternValidationError.TOO_LONG
        )

    flags = 0 if case_sensitive else re.IGNORECASE
    try:
        compiled = re.compile(pattern, flags)
    except (re.error, OverflowError, RecursionError) as e:
        logger.warning(
            f"Invalid regex pattern rejected: {e}",
            extra={"pattern": pattern}
        )
        raise PatternValidationError(
            "Invalid regex pattern",
            PatternValidationError.INVALID_SYNTAX
        )

    if _has_stacked_repetition(pattern) or compiled.groups >= MAX_CAPTURING_GROUPS:
        logger.warning(
            "Potentially dangerous regex pattern rejected",
            extra={"pattern": pattern, "groups": compiled.groups}
        )
        raise PatternValidationError(
            "Potentially dangerous regex pattern",
            PatternValidationError.POTENTIALLY_UNSAFE
        )

    return compiled
