"""属性测试：日志记录功能

使用 Hypothesis 进行基于属性的测试，验证搜索请求会留下访问日志和搜索日志。
"""

import io
import logging
import tempfile
from pathlib import Path

from fastapi.testclient import TestClient
from hypothesis import given, strategies as st, settings

from filesearch.main import app


def _capture_logs(level: int):
    """为 filesearch 日志记录器挂载一个内存处理器"""
    log_stream = io.StringIO()
    log_handler = logging.StreamHandler(log_stream)
    log_handler.setLevel(logging.DEBUG)
    log_handler.setFormatter(logging.Formatter('%(name)s - %(levelname)s - %(message)s'))

    package_logger = logging.getLogger('filesearch')
    original_level = package_logger.level
    package_logger.addHandler(log_handler)
    package_logger.setLevel(level)

    def restore():
        package_logger.removeHandler(log_handler)
        package_logger.setLevel(original_level)

    return log_stream, restore


# Property: 日志记录
@settings(max_examples=50, deadline=None)
@given(
    num_files=st.integers(min_value=0, max_value=5),
    keyword=st.text(alphabet="abcdefghij", min_size=1, max_size=10),
)
def test_property_logging_records_access_and_search(num_files, keyword):
    """属性测试：日志记录

    属性：对于任意搜索请求，系统应记录访问日志和搜索完成日志（INFO 级别）。
    """
    log_stream, restore = _capture_logs(logging.INFO)
    try:
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            for i in range(num_files):
                (root / f"doc_{i}.txt").write_text(f"line {i} contains {keyword}\n", encoding='utf-8')

            client = TestClient(app)
            response = client.post("/api/files/search", json={"pattern": keyword, "basePath": str(root)})

        assert response.status_code == 200
        assert response.json()["totalMatches"] == num_files

        log_output = log_stream.getvalue()
        assert f"filesearch.api - INFO - Search request from testclient: basePath={root}" in log_output
        assert f"Content search completed: {num_files} matches" in log_output
    finally:
        restore()


# Property: 校验失败记录警告
@settings(max_examples=50, deadline=None)
@given(base_path=st.sampled_from(["relative", "../etc", "a/b/c", "./x"]))
def test_property_rejected_requests_are_logged_as_warnings(base_path):
    """属性测试：被拒绝的请求记录 WARNING 日志，并且不会记录搜索完成"""
    log_stream, restore = _capture_logs(logging.INFO)
    try:
        client = TestClient(app)
        response = client.post("/api/files/search", json={"pattern": "foo", "basePath": base_path})

        assert response.status_code == 400

        log_output = log_stream.getvalue()
        assert "filesearch.security - WARNING" in log_output
        assert "filesearch.api - INFO - Search request rejected - Status: 400" in log_output
        assert "Content search completed" not in log_output
    finally:
        restore()
