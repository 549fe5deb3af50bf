"""
/v1/pod 端点 - 登录与文件上传
"""
import logging
import uuid
from fastapi import APIRouter, Depends

from app.dependencies.pod import get_file_handler, get_pod_session, get_upload_service
from app.dependencies.upload import UploadForm, get_upload_form
from models import ErrorResponse, LoginResponse, UploadRequest, UploadResponsePayload
from services.file_handler_service import FileHandlerService
from services.pod_session import PodSession
from services.upload_service import PodUploadService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/pod", tags=["Pod"])


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    }
)
async def login(
    session: PodSession = Depends(get_pod_session)
) -> LoginResponse:
    """
    立即建立 POD 会话

    上传时也会按需建立，此端点用于提前验证凭证配置
    """
    await session.ensure_authenticated()
    logger.info(f"Ready to upload files, target POD: {session.webid}")

    return LoginResponse(
        message="Logged in to Solid POD",
        webid=session.webid,
        pod_base_url=session.base_url
    )


@router.post(
    "/upload",
    response_model=UploadResponsePayload,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    }
)
async def upload_file(
    form: UploadForm = Depends(get_upload_form),
    session: PodSession = Depends(get_pod_session),
    uploader: PodUploadService = Depends(get_upload_service),
    file_handler: FileHandlerService = Depends(get_file_handler)
) -> UploadResponsePayload:
    """
    上传文件到 POD 并按可见性等级设置访问权限

    文件先写入本地暂存目录，处理结束后无论成功与否都会被清理。
    ACL 设置失败时返回 PARTIAL_SUCCESS：文件已写入，权限状态不确定。
    """
    request_id = str(uuid.uuid4())
    file_name = form.file.filename or ""
    logger.info(f"[{request_id}] Processing upload of '{file_name}' with tier {form.tier.value}")

    workspace = file_handler.create_workspace(request_id)
    try:
        staged_path = await file_handler.stage_upload(form.file, file_name, workspace, request_id)

        request = UploadRequest(
            file_bytes=staged_path.read_bytes(),
            file_name=file_name,
            tier=form.tier,
            owner_webid=session.webid,
            grantees=form.grantees
        )
        return await uploader.upload(request, request_id)
    finally:
        file_handler.cleanup_workspace(workspace, request_id)
