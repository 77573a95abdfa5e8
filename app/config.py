"""
应用配置加载。

设计目标：
- **严格**：缺少必要环境变量就直接报错（避免“看起来跑了其实没配置好”）
- **类型安全**：使用 Pydantic 校验数值范围等，减少运行时踩坑
- **可测试**：核心加载函数接收 `environ` 显式输入，便于单元测试
"""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, Field


class AppConfig(BaseModel):
    """应用运行所需配置（数据库与缓存地址必填，其余有默认值）。"""

    database_url: str = Field(min_length=1)
    redis_url: str = Field(min_length=1)
    cache_ttl_seconds: int = Field(default=300, gt=0)
    cache_timeout_seconds: float = Field(default=0.5, gt=0)
    db_pool_max_size: int = Field(default=10, gt=0)
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = Field(default=8000, gt=0, lt=65536)


def load_config_from_env(environ: Mapping[str, str]) -> AppConfig:
    """
    从环境变量加载并校验配置。

    - **输入**：`environ`（例如 `os.environ`）
    - **输出**：`AppConfig`
    - **失败**：必填缺失/为空、或数值非法，抛 `ValueError`
    """

    required_keys: tuple[str, ...] = ("DATABASE_URL", "REDIS_URL")
    missing: list[str] = [key for key in required_keys if key not in environ or not environ[key]]
    if missing:
        raise ValueError(f"Missing required env vars: {', '.join(missing)}")

    optional_keys: dict[str, str] = {
        "CACHE_TTL_SECONDS": "cache_ttl_seconds",
        "CACHE_TIMEOUT_SECONDS": "cache_timeout_seconds",
        "DB_POOL_MAX_SIZE": "db_pool_max_size",
        "LOG_LEVEL": "log_level",
        "HOST": "host",
        "PORT": "port",
    }
    overrides: dict[str, str] = {field: environ[key] for key, field in optional_keys.items() if environ.get(key)}

    # 交给 Pydantic 做类型校验（ValidationError 本身就是 ValueError）
    return AppConfig(
        database_url=environ["DATABASE_URL"],
        redis_url=environ["REDIS_URL"],
        **overrides,
    )
