"""文件发现模块

遍历搜索根目录，按文件名通配符过滤，返回待扫描的候选文件列表。
"""

import logging
import re
from pathlib import Path
from typing import Callable, List, Optional


logger = logging.getLogger(__name__)


def compile_name_pattern(name_pattern: str) -> re.Pattern:
    """将文件名通配符编译为正则表达式

    只支持 ``*``（匹配任意长度字符），其余字符按字面匹配。
    匹配整个文件名，区分大小写。

    Args:
        name_pattern: 通配符，例如 ``*.txt``、``test*.py``

    Returns:
        Pattern: 编译好的正则表达式，使用 ``fullmatch`` 匹配
    """
    parts = [re.escape(part) for part in name_pattern.split("*")]
    return re.compile(".*".join(parts), re.DOTALL)


def discover_files(
    root: str,
    recursive: bool = True,
    name_pattern: Optional[str] = None,
    sort_entries: bool = True,
    interrupt: Optional[Callable[[], None]] = None,
) -> List[str]:
    """深度优先遍历目录，收集候选文件

    - 目录：``recursive`` 为真时递归进入，否则直接跳过
    - 普通文件：未指定 ``name_pattern`` 或文件名匹配通配符时加入结果
    - 符号链接：既不进入也不加入结果
    - 无法读取的目录：记录警告后跳过，不影响其他目录

    目录项顺序：``sort_entries`` 为真时按名称排序，保证结果可复现；
    否则沿用操作系统返回的顺序，该顺序没有任何保证。

    Args:
        root: 搜索根目录（绝对路径）
        recursive: 是否递归子目录
        name_pattern: 可选的文件名通配符
        sort_entries: 是否对每个目录的目录项排序
        interrupt: 可选回调，在列出每个目录前调用；抛出异常即中止遍历

    Returns:
        List[str]: 候选文件的绝对路径列表
    """
    name_re = compile_name_pattern(name_pattern) if name_pattern else None
    files: List[str] = []
    _walk(Path(root), recursive, name_re, sort_entries, interrupt, files)
    return files


def _walk(
    directory: Path,
    recursive: bool,
    name_re: Optional[re.Pattern],
    sort_entries: bool,
    interrupt: Optional[Callable[[], None]],
    files: List[str],
) -> None:
    if interrupt is not None:
        interrupt()

    try:
        children = list(directory.iterdir())
    except OSError as e:
        logger.warning(
            f"Failed to read directory: {directory}",
            extra={"dir_path": str(directory), "error": str(e)}
        )
        return

    if sort_entries:
        children.sort(key=lambda child: child.name)

    for child in children:
        try:
            # is_dir / is_file 会跟随链接，先排除链接本身
            if child.is_symlink():
                continue
            is_dir = child.is_dir()
            is_file = child.is_file()
        except OSError:
            continue

        if is_dir:
            if recursive:
                _walk(child, recursive, name_re, sort_entries, interrupt, files)
        elif is_file:
            if name_re is not None and not name_re.fullmatch(child.name):
                continue
            files.append(str(child))
