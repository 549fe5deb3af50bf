"""服务层"""
from .pod_session import PodSession
from .acl_service import AccessControlService
from .upload_service import PodUploadService
from .file_handler_service import FileHandlerService, file_handler_service

__all__ = [
    "PodSession",
    "AccessControlService",
    "PodUploadService",
    "FileHandlerService",
    "file_handler_service",
]
