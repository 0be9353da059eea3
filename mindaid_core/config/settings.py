"""配置管理模块。

支持从 .env、config.yaml 以及环境变量加载配置。
优先级：构造参数 > 环境变量 > .env > config.yaml。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_WELCOME_MESSAGE = (
    "Hello! I'm your MindAid assistant. How are you feeling today? "
    "Remember, our chat is anonymous and secure."
)


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("MINDAID_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
        Path(__file__).resolve().parents[1] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- 流式对话服务 ----
    chat_url: str = Field(
        default="http://localhost:54321/functions/v1/chat",
        description="流式对话接口地址（POST，返回 data: 分帧的字节流）",
    )
    chat_api_key: Optional[str] = Field(default=None, description="对话接口的 Bearer 令牌")
    http_timeout: float = Field(default=30.0, ge=1.0, description="HTTP 超时时间（秒）")

    # ---- 本地存储 ----
    storage_root: str = Field(default=".storage", description="存储根目录")
    session_file: str = Field(
        default="session_id",
        description="匿名会话 ID 文件名（相对 storage_root）",
    )

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    # ---- 面向用户的文案 ----
    welcome_message: str = Field(
        default=DEFAULT_WELCOME_MESSAGE,
        description="会话没有历史记录时展示的欢迎语",
    )
    stream_error_message: str = Field(
        default="Failed to get response. Please try again.",
        description="流式请求失败时通知用户的文案",
    )

    model_config = SettingsConfigDict(
        env_prefix="MINDAID_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("chat_api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("chat_url")
    @classmethod
    def validate_chat_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("chat_url must be an http(s) URL")
        return v.rstrip("/")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


settings = Settings()
