"""
上传请求解析依赖

解析 multipart 表单中的可见性等级和授权 WebID 列表，在任何网络 I/O 之前拒绝无效请求
"""
import json
import logging
from typing import Optional

from fastapi import File, Form, UploadFile
from pydantic import AnyHttpUrl, BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from models.acl import AccessTier
from services.errors import ValidationError
from services.wac import is_safe_iri

logger = logging.getLogger(__name__)

# 兼容旧客户端使用的 "free"
TIER_ALIASES: dict[str, AccessTier] = {
    "free": AccessTier.PUBLIC,
    "public": AccessTier.PUBLIC,
    "community": AccessTier.COMMUNITY,
    "private": AccessTier.PRIVATE,
}

_webid_adapter = TypeAdapter(AnyHttpUrl)


class UploadForm(BaseModel):
    """已解析的上传表单"""
    file: UploadFile
    tier: AccessTier
    grantees: list[str] = []

    class Config:
        arbitrary_types_allowed = True


def parse_tier(raw: Optional[str]) -> AccessTier:
    """不区分大小写，省略时默认为 PUBLIC"""
    if raw is None or not raw.strip():
        return AccessTier.PUBLIC

    tier = TIER_ALIASES.get(raw.strip().lower())
    if tier is None:
        raise ValidationError(
            f"Unrecognized tier: {raw}",
            details={"tier": raw, "allowed": sorted(TIER_ALIASES)}
        )
    return tier


def parse_grantee_list(raw: Optional[str]) -> list[str]:
    """接受 JSON 数组或逗号分隔字符串"""
    if raw is None or not raw.strip():
        return []

    raw = raw.strip()
    if raw.startswith("["):
        try:
            values = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValidationError(
                f"Grantees is not a valid JSON array: {e}",
                details={"grantees": raw}
            ) from e
        if not all(isinstance(value, str) for value in values):
            raise ValidationError(
                "Grantees JSON array must contain only strings",
                details={"grantees": raw}
            )
    else:
        values = raw.split(",")

    return [value.strip() for value in values if value.strip()]


def normalize_webid(value: str) -> Optional[str]:
    """返回规范化（百分号编码）后的 WebID，无效时返回 None"""
    try:
        webid = str(_webid_adapter.validate_python(value))
    except PydanticValidationError:
        return None
    return webid if is_safe_iri(webid) else None


def validate_grantees(candidates: list[str]) -> tuple[list[str], list[str]]:
    """
    校验 WebID，保持顺序去重

    Returns:
        (有效列表, 被丢弃列表)
    """
    valid: list[str] = []
    rejected: list[str] = []

    for candidate in candidates:
        webid = normalize_webid(candidate)
        if webid is None:
            logger.warning(f"Dropping invalid grantee WebID: {candidate}")
            rejected.append(candidate)
        elif webid not in valid:
            valid.append(webid)

    return valid, rejected


async def get_upload_form(
    file: Optional[UploadFile] = File(None),
    tier: Optional[str] = Form(None),
    grantees: Optional[str] = Form(None)
) -> UploadForm:
    """
    解析上传表单

    Raises:
        ValidationError: 缺少文件、等级无法识别、PRIVATE 等级没有任何有效 WebID
    """
    if file is None:
        raise ValidationError("No file provided")

    parsed_tier = parse_tier(tier)
    candidates = parse_grantee_list(grantees)

    if parsed_tier != AccessTier.PRIVATE:
        if candidates:
            logger.warning(f"Ignoring grantees for {parsed_tier.value} tier")
        return UploadForm(file=file, tier=parsed_tier)

    valid, rejected = validate_grantees(candidates)
    if candidates and not valid:
        raise ValidationError(
            "No valid grantee WebIDs supplied for private tier",
            details={"rejected": rejected}
        )

    return UploadForm(file=file, tier=parsed_tier, grantees=valid)
