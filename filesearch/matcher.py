"""逐行匹配模块

读取单个文件，逐行应用匹配器，生成匹配记录。
任何读取失败都降级为"无匹配"，不会中断整个搜索。
"""

import logging
import os
import re
from typing import Callable, List, Optional, Tuple

from filesearch.config import settings
from filesearch.models import MatchRecord


logger = logging.getLogger(__name__)


# 匹配器：输入一行文本，返回 (起始列, 长度) 或 None
LineMatcher = Callable[[str], Optional[Tuple[int, int]]]


class FileScan:
    """单个文件的扫描结果

    ``skipped_reason`` 非空表示文件被跳过（过大或读取失败），此时没有匹配。
    """

    SKIPPED_TOO_LARGE = "too_large"
    SKIPPED_UNREADABLE = "unreadable"

    def __init__(
        self,
        path: str,
        matches: Optional[List[MatchRecord]] = None,
        skipped_reason: Optional[str] = None,
    ):
        self.path = path
        self.matches = matches if matches is not None else []
        self.skipped_reason = skipped_reason

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None


def build_matcher(
    pattern: str,
    use_regex: bool = False,
    case_sensitive: bool = False,
    compiled: Optional[re.Pattern] = None,
) -> LineMatcher:
    """构建行匹配器

    正则模式下使用已校验的 ``compiled``（未提供时直接编译 ``pattern``）；
    否则做普通子串匹配。不区分大小写的子串匹配也通过转义后的正则实现，
    保证返回的列号和长度对应原始行文本。

    Args:
        pattern: 搜索模式
        use_regex: 是否为正则模式
        case_sensitive: 是否区分大小写
        compiled: 预先编译好的正则表达式

    Returns:
        LineMatcher: 行匹配函数
    """
    if use_regex:
        regex = compiled
        if regex is None:
            regex = re.compile(pattern, 0 if case_sensitive else re.IGNORECASE)
    elif case_sensitive:
        def match_substring(line: str) -> Optional[Tuple[int, int]]:
            index = line.find(pattern)
            return (index, len(pattern)) if index != -1 else None
        return match_substring
    else:
        regex = re.compile(re.escape(pattern), re.IGNORECASE)

    def match_regex(line: str) -> Optional[Tuple[int, int]]:
        match = regex.search(line)
        if match is None:
            return None
        return match.start(), match.end() - match.start()

    return match_regex


def scan_file(path: str, matcher: LineMatcher, max_matches: int) -> FileScan:
    """扫描单个文件

    - 超过 ``settings.max_file_size`` 的文件直接跳过（整个文件会被读入内存）
    - 按 UTF-8 严格解码，按 ``\\n`` 切分，不做行尾归一化和裁剪
    - 每行只记录第一个匹配
    - 收集到 ``max_matches`` 条记录后立即停止

    Args:
        path: 文件路径
        matcher: 行匹配器
        max_matches: 本文件最多记录的匹配数

    Returns:
        FileScan: 扫描结果，不会抛出异常
    """
    try:
        size = os.stat(path).st_size
        if size > settings.max_file_size:
            logger.info(
                f"File too large for search: {path}",
                extra={"file_path": path, "size": size}
            )
            return FileScan(path, skipped_reason=FileScan.SKIPPED_TOO_LARGE)

        with open(path, "rb") as f:
            content = f.read().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(
            f"Failed to search file: {path}",
            extra={"file_path": path, "error": str(e)}
        )
        return FileScan(path, skipped_reason=FileScan.SKIPPED_UNREADABLE)

    matches: List[MatchRecord] = []
    if max_matches <= 0:
        return FileScan(path, matches)

    for line_number, line in enumerate(content.split("\n"), start=1):
        found = matcher(line)
        if found is None:
            continue

        column, length = found
        matches.append(MatchRecord(
            line_number=line_number,
            line_content=line,
            column_offset=column,
            match_length=length,
        ))
        if len(matches) >= max_matches:
            break

    return FileScan(path, matches)
