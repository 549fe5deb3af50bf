"""
POD 服务依赖
"""
from fastapi import Depends, Request

from services.file_handler_service import FileHandlerService, file_handler_service
from services.pod_session import PodSession
from services.upload_service import PodUploadService


def get_pod_session(request: Request) -> PodSession:
    """获取进程级 POD 会话（在应用生命周期中创建）"""
    return request.app.state.pod_session


def get_upload_service(
    session: PodSession = Depends(get_pod_session)
) -> PodUploadService:
    return PodUploadService(session)


def get_file_handler() -> FileHandlerService:
    return file_handler_service
