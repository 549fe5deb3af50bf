"""数据模型"""
from .acl import AccessTier, PermissionSet, AclSubject, AccessControlEntry, ResourceAcl
from .requests import UploadRequest
from .responses import UploadStatus, AclStatus, UploadResponsePayload, LoginResponse, ErrorResponse

__all__ = [
    "AccessTier",
    "PermissionSet",
    "AclSubject",
    "AccessControlEntry",
    "ResourceAcl",
    "UploadRequest",
    "UploadStatus",
    "AclStatus",
    "UploadResponsePayload",
    "LoginResponse",
    "ErrorResponse",
]
