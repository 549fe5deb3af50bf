"""
资源命名

清理用户提供的文件名，并由 WebID 和可见性等级推导目标资源 URL
"""
import re
from typing import Optional
from urllib.parse import urlsplit

from models.acl import AccessTier
from services.errors import ConfigurationError, ValidationError

PROFILE_SEPARATOR = "/profile/"

TIER_FOLDERS: dict[AccessTier, str] = {
    AccessTier.PUBLIC: "public",
    AccessTier.COMMUNITY: "community",
    AccessTier.PRIVATE: "private",
}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_file_name(file_name: str) -> str:
    """
    将 [A-Za-z0-9._-] 之外的字符替换为 '_'

    不同输入可能得到相同结果（如 "a!b" 与 "a?b"），调用方需接受同名覆盖
    """
    return _UNSAFE_CHARS.sub("_", file_name)


def safe_file_name(file_name: str) -> str:
    """
    清理文件名，并拒绝无法作为路径段使用的结果

    Raises:
        ValidationError: 清理后为空、"." 或 ".."
    """
    sanitized = sanitize_file_name(file_name)
    if sanitized in ("", ".", ".."):
        raise ValidationError(
            f"Invalid file name: {file_name!r}",
            details={"file_name": file_name}
        )
    return sanitized


def _is_absolute_url(url: str) -> bool:
    parts = urlsplit(url)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def pod_base_url(webid: Optional[str], override: Optional[str] = None) -> str:
    """
    获取 POD 根容器 URL

    Args:
        webid: POD 所有者 WebID（如 https://alice.example/profile/card#me）
        override: 显式配置的根容器 URL

    Returns:
        不带结尾 '/' 的根容器 URL

    Raises:
        ConfigurationError: WebID 缺失或无法解析
    """
    if override:
        base = override.rstrip("/")
        if not _is_absolute_url(base):
            raise ConfigurationError(
                f"Invalid pod base URL: {override}",
                details={"solid_pod_base_url": override}
            )
        return base

    if not webid:
        raise ConfigurationError("SOLID_WEBID is not configured")

    if PROFILE_SEPARATOR not in webid:
        raise ConfigurationError(
            f"WebID does not contain a profile document path: {webid}",
            details={"solid_webid": webid}
        )

    base = webid.split(PROFILE_SEPARATOR)[0]
    if not _is_absolute_url(base):
        raise ConfigurationError(
            f"Invalid WebID: {webid}",
            details={"solid_webid": webid}
        )
    return base


def derive_resource_url(base_url: str, tier: AccessTier, file_name: str) -> str:
    """根容器 URL + 等级目录 + 清理后的文件名"""
    folder = TIER_FOLDERS[tier]
    return f"{base_url}/{folder}/{safe_file_name(file_name)}"
