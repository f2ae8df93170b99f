"""配置管理模块

提供全局配置参数，支持从环境变量和 .env 文件读取配置。
包含配置验证和错误提示功能。
"""

import sys
import logging
from pydantic_settings import BaseSettings
from pydantic import ConfigDict, field_validator, ValidationError


logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """应用配置类

    从环境变量或 .env 文件读取配置参数。
    所有资源上限（结果数量、文件大小、正则长度、超时）都在这里集中定义。
    """

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )

    # 日志级别
    log_level: str = "INFO"

    # 单次搜索返回的匹配数上限（全局配额）
    max_results_ceiling: int = 1000

    # 单个文件的最大扫描大小（字节），超过则跳过
    max_file_size: int = 10 * 1024 * 1024

    # 正则表达式最大长度
    max_pattern_length: int = 500

    # 单次搜索的墙钟超时（秒）
    search_timeout: float = 30.0

    # 遍历目录时是否按名称排序目录项
    discovery_sort_entries: bool = True

    # 允许的跨域来源，逗号分隔
    cors_origins: str = "*"

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """验证日志级别是否有效"""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                f"无效的日志级别: {v}\n"
                f"有效的日志级别: {', '.join(valid_levels)}"
            )
        return v_upper

    @field_validator('max_results_ceiling')
    @classmethod
    def validate_max_results_ceiling(cls, v: int) -> int:
        """验证结果数量上限是否合理

        过大的上限会让单次响应体积失控，因此不允许超过 1000。
        """
        if v <= 0:
            raise ValueError(
                f"MAX_RESULTS_CEILING 必须大于 0，当前值: {v}"
            )
        if v > 1000:
            raise ValueError(
                f"MAX_RESULTS_CEILING 不应超过 1000，当前值: {v}\n"
                f"过大的限制可能导致性能问题。"
            )
        return v

    @field_validator('max_file_size', 'max_pattern_length')
    @classmethod
    def validate_positive_size(cls, v: int, info) -> int:
        if v <= 0:
            raise ValueError(
                f"{info.field_name.upper()} 必须大于 0，当前值: {v}"
            )
        return v

    @field_validator('search_timeout')
    @classmethod
    def validate_search_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(
                f"SEARCH_TIMEOUT 必须大于 0，当前值: {v}"
            )
        return v

    def cors_origin_list(self) -> list:
        """将 CORS_ORIGINS 解析为来源列表"""
        origins = [origin.strip() for origin in self.cors_origins.split(",")]
        return [origin for origin in origins if origin]


def load_settings() -> Settings:
    """加载并验证配置

    如果配置验证失败，记录错误并退出程序。

    Returns:
        Settings: 验证通过的配置实例

    Raises:
        SystemExit: 配置验证失败时退出
    """
    try:
        return Settings()
    except ValidationError as e:
        # 格式化错误信息
        error_messages = []
        error_messages.append("=" * 60)
        error_messages.append("配置错误 - 应用无法启动")
        error_messages.append("=" * 60)

        for error in e.errors():
            field = str(error['loc'][0]) if error['loc'] else 'unknown'
            msg = error['msg']
            error_messages.append(f"\n字段: {field.upper()}")
            error_messages.append(f"错误: {msg}")

        error_messages.append("\n" + "=" * 60)
        error_messages.append("请检查 .env 文件或环境变量配置。")
        error_messages.append("=" * 60)

        error_text = "\n".join(error_messages)
        logger.error(error_text)
        print(error_text, file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        error_text = (
            f"加载配置时发生未预期的错误: {str(e)}\n"
            f"请检查配置文件格式是否正确。"
        )
        logger.error(error_text)
        print(error_text, file=sys.stderr)
        sys.exit(1)


# 全局配置实例
# 使用 load_settings() 确保配置验证
settings = load_settings()
