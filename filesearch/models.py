"""Pydantic 数据模型

定义搜索请求、响应和错误响应的数据模型。
对外字段使用 camelCase，同时接受 snake_case 字段名。
"""

from datetime import datetime
from typing import List, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SearchRequest(_WireModel):
    """搜索请求模型

    ``pattern`` 和 ``base_path`` 在这里是可选的，
    缺失时由搜索服务统一返回 "pattern and basePath are required"。
    """
    pattern: Optional[str] = Field(None, description="搜索模式（子串或正则）")
    base_path: Optional[str] = Field(None, description="搜索根目录，必须是绝对路径")
    recursive: bool = Field(True, description="是否递归子目录")
    use_regex: bool = Field(
        False,
        validation_alias=AliasChoices("useRegex", "use_regex", "regex"),
        description="是否按正则表达式匹配",
    )
    case_sensitive: bool = Field(False, description="是否区分大小写")
    name_pattern: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("namePattern", "name_pattern", "filePattern"),
        description="文件名通配符，例如 *.txt",
    )
    max_results: int = Field(1000, description="最大匹配数，会被限制在 0 和系统上限之间")

    @field_validator('max_results')
    @classmethod
    def clamp_max_results(cls, v: int) -> int:
        """负数按 0 处理：不扫描任何文件"""
        return max(v, 0)


class MatchRecord(_WireModel):
    """单行匹配记录

    只记录每行的第一个匹配。
    """
    line_number: int = Field(..., description="行号，从 1 开始")
    line_content: str = Field(..., description="完整的行内容，不截断")
    column_offset: int = Field(..., description="匹配起始列，从 0 开始")
    match_length: int = Field(..., description="匹配长度")


class FileResult(_WireModel):
    """单个文件的搜索结果"""
    path: str = Field(..., description="文件绝对路径")
    matches: List[MatchRecord] = Field(..., description="按行号排序的匹配记录")


class SearchResponse(_WireModel):
    """搜索响应模型

    ``total_matches`` 等于所有文件匹配数之和，且不超过配额。
    """
    results: List[FileResult] = Field(..., description="按发现顺序排列的文件结果")
    total_matches: int = Field(..., description="匹配总数")
    truncated: bool = Field(..., description="扫描完所有候选文件前是否已达到配额")
    duration_millis: int = Field(..., description="搜索耗时（毫秒）")


class ErrorResponse(BaseModel):
    """错误响应模型

    统一的错误响应格式。
    """
    error: str = Field(..., description="错误信息")
    timestamp: datetime = Field(default_factory=datetime.now, description="错误发生时间")
