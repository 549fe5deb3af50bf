"""
响应模型定义
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
from enum import Enum

from models.acl import AccessTier


class UploadStatus(str, Enum):
    """上传总体状态"""
    COMPLETED = "COMPLETED"
    PARTIAL_SUCCESS = "PARTIAL_SUCCESS"


class AclStatus(str, Enum):
    """ACL 设置状态"""
    APPLIED = "APPLIED"
    FAILED = "FAILED"


class UploadResponsePayload(BaseModel):
    """
    /v1/pod/upload 端点的响应体

    PARTIAL_SUCCESS 表示文件已写入 POD，但 ACL 状态不确定
    """
    request_id: str = Field(..., description="请求 ID")
    status: UploadStatus = Field(..., description="总体状态")
    resource_url: str = Field(..., description="资源 URL")
    tier: AccessTier = Field(..., description="可见性等级")
    access_level: str = Field(..., description="访问级别说明")
    grantees: Optional[list[str]] = Field(None, description="实际授权的 WebID（仅 PRIVATE）")
    acl_status: AclStatus = Field(..., description="ACL 设置状态")
    acl_error: Optional[Dict[str, Any]] = Field(None, description="ACL 错误信息（失败时）")

    class Config:
        json_schema_extra = {
            "example": {
                "request_id": "550e8400-e29b-41d4-a716-446655440000",
                "status": "COMPLETED",
                "resource_url": "https://alice.example/private/report.pdf",
                "tier": "private",
                "access_level": "Private: owner and listed stakeholders can read",
                "grantees": ["https://bob.example/profile/card#me"],
                "acl_status": "APPLIED"
            }
        }

    @property
    def acl_applied(self) -> bool:
        return self.acl_status == AclStatus.APPLIED


class LoginResponse(BaseModel):
    """
    /v1/pod/login 端点的响应体
    """
    message: str = Field(..., description="状态信息")
    webid: str = Field(..., description="POD 所有者 WebID")
    pod_base_url: str = Field(..., description="POD 根容器 URL")


class ErrorResponse(BaseModel):
    """
    错误响应
    """
    error_code: str = Field(..., description="错误代码")
    message: str = Field(..., description="错误消息")
    details: Optional[Dict[str, Any]] = Field(None, description="错误详情")

    class Config:
        json_schema_extra = {
            "example": {
                "error_code": "VALIDATION_ERROR",
                "message": "No valid grantee WebIDs supplied for private tier",
                "details": {
                    "rejected": ["not-a-url"]
                }
            }
        }
