#!/usr/bin/env python3
"""命令行搜索脚本

在指定目录下执行一次文件内容搜索并打印结果。

使用方法:
    python scripts/search.py PATTERN BASE_PATH [--regex] [--case-sensitive]
                             [--no-recursive] [--name-pattern GLOB] [--max-results N]
"""

import argparse
import sys
from pathlib import Path

# 添加项目根目录到 Python 路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from filesearch.models import SearchRequest
from filesearch.search_service import SearchError, execute_search


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="在目录树中搜索文件内容")
    parser.add_argument("pattern", help="搜索模式")
    parser.add_argument("base_path", help="搜索根目录（绝对路径）")
    parser.add_argument("--regex", action="store_true", help="按正则表达式匹配")
    parser.add_argument("--case-sensitive", action="store_true", help="区分大小写")
    parser.add_argument("--no-recursive", action="store_true", help="不搜索子目录")
    parser.add_argument("--name-pattern", default=None, help="文件名通配符，例如 *.py")
    parser.add_argument("--max-results", type=int, default=1000, help="最大匹配数，0 表示不扫描任何文件")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """主函数：执行搜索并以 grep 风格输出

    Returns:
        int: 退出码，0 表示成功，1 表示搜索出错
    """
    args = parse_args(argv)

    request = SearchRequest(
        pattern=args.pattern,
        base_path=args.base_path,
        recursive=not args.no_recursive,
        use_regex=args.regex,
        case_sensitive=args.case_sensitive,
        name_pattern=args.name_pattern,
        max_results=args.max_results,
    )

    try:
        response = execute_search(request)
    except SearchError as e:
        print(f"错误 ({e.status_code}): {e}", file=sys.stderr)
        return 1

    for file_result in response.results:
        for match in file_result.matches:
            print(f"{file_result.path}:{match.line_number}:{match.column_offset + 1}: {match.line_content}")

    print("-" * 60)
    print(
        f"共 {response.total_matches} 处匹配，{len(response.results)} 个文件，"
        f"耗时 {response.duration_millis} ms"
    )
    if response.truncated:
        print("结果已截断：达到最大匹配数，仍有文件未扫描。")

    return 0


if __name__ == "__main__":
    sys.exit(main())
