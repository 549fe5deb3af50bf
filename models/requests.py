"""
请求模型定义
"""
from pydantic import BaseModel, Field

from models.acl import AccessTier


class UploadRequest(BaseModel):
    """
    一次上传调用的输入

    每次调用构建，不做持久化。grantees 已在入站边界完成 URL 校验。
    """
    file_bytes: bytes = Field(..., description="文件内容")
    file_name: str = Field(..., description="原始文件名")
    tier: AccessTier = Field(AccessTier.PUBLIC, description="可见性等级")
    owner_webid: str = Field(..., description="POD 所有者 WebID")
    grantees: list[str] = Field(default_factory=list, description="PRIVATE 等级的授权 WebID 列表")

    class Config:
        json_schema_extra = {
            "example": {
                "file_name": "report.pdf",
                "tier": "private",
                "owner_webid": "https://alice.example/profile/card#me",
                "grantees": ["https://bob.example/profile/card#me"]
            }
        }
