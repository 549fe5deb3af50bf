"""
应用配置
"""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """应用配置"""

    # 应用基础配置
    app_name: str = "Pod Upload Gateway"
    app_version: str = "1.0.0"
    debug: bool = False

    # 服务器配置
    host: str = "0.0.0.0"
    port: int = 8000

    # Solid POD 配置
    solid_webid: Optional[str] = None  # POD 所有者的 WebID
    solid_pod_base_url: Optional[str] = None  # 如果为 None，从 WebID 推导

    # Solid-OIDC 客户端凭证
    solid_oidc_issuer: Optional[str] = None
    solid_client_id: Optional[str] = None
    solid_client_secret: Optional[str] = None
    solid_token_refresh_margin: int = 60  # 秒

    # 本地暂存目录配置
    upload_tmp_dir: str = "./uploads"
    staging_max_age_seconds: int = 3600
    staging_cleanup_interval_seconds: int = 300

    # HTTP 客户端配置
    http_timeout: int = 30  # 秒

    # 日志配置
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


settings = Settings()
