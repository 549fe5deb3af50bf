"""
上传编排服务 (Upload Service)

严格按顺序执行：
1. 确保已认证
2. 解析内容类型，推导资源 URL
3. 上传文件字节
4. 计算目标 ACL
5. 应用 ACL（失败时返回部分成功，不回滚已写入的文件）
6. 返回结果

文件写入后、ACL 应用前，资源继承容器的默认 ACL，这一窗口期是可接受的
"""
import logging
import uuid
from typing import Optional

import httpx

from models.acl import AccessTier
from models.requests import UploadRequest
from models.responses import AclStatus, UploadResponsePayload, UploadStatus
from services.access_policy import compute_target_acl, describe_access_level
from services.acl_service import AccessControlService
from services.content_types import resolve_content_type
from services.errors import AclError, TransmissionError, ValidationError
from services.naming import derive_resource_url, safe_file_name
from services.pod_session import PodSession

logger = logging.getLogger(__name__)


class PodUploadService:
    """上传编排服务"""

    def __init__(
        self,
        session: PodSession,
        acl_service: Optional[AccessControlService] = None
    ) -> None:
        self.session = session
        self.acl_service = acl_service or AccessControlService(session)

    async def upload(
        self,
        request: UploadRequest,
        request_id: Optional[str] = None
    ) -> UploadResponsePayload:
        """
        上传文件并设置访问权限

        Args:
            request: 上传请求
            request_id: 请求 ID，为 None 时自动生成

        Returns:
            UploadResponsePayload；ACL 失败时 status 为 PARTIAL_SUCCESS

        Raises:
            ValidationError: 请求无效
            ConfigurationError: WebID 或凭证配置错误
            AuthenticationError: 无法建立认证
            TransmissionError: 文件上传失败
        """
        request_id = request_id or str(uuid.uuid4())

        safe_file_name(request.file_name)
        if not request.file_bytes:
            raise ValidationError("File is empty", details={"file_name": request.file_name})

        # Step 1: 认证
        await self.session.ensure_authenticated()

        # Step 2: 内容类型与资源 URL
        content_type = resolve_content_type(request.file_name)
        resource_url = derive_resource_url(self.session.base_url, request.tier, request.file_name)
        logger.info(f"[{request_id}] Uploading to: {resource_url} ({content_type}, {len(request.file_bytes)} bytes)")

        # Step 3: 上传文件字节
        await self._transmit(resource_url, request.file_bytes, content_type, request_id)

        # Step 4: 计算目标 ACL
        target_acl = compute_target_acl(request.tier, request.owner_webid, request.grantees)
        access_level = describe_access_level(request.tier)
        grantees = [
            webid for webid in target_acl.agents if webid != request.owner_webid
        ]

        # Step 5: 应用 ACL
        acl_error = None
        try:
            await self.acl_service.apply_acl(resource_url, target_acl, request_id)
            logger.info(f"[{request_id}] {access_level}")
            if grantees:
                logger.info(f"[{request_id}] Stakeholders with access: {grantees}")
        except AclError as e:
            logger.warning(f"[{request_id}] File uploaded but ACL could not be applied: {e}")
            acl_error = e.to_dict()

        # Step 6: 结果
        return UploadResponsePayload(
            request_id=request_id,
            status=UploadStatus.COMPLETED if acl_error is None else UploadStatus.PARTIAL_SUCCESS,
            resource_url=resource_url,
            tier=request.tier,
            access_level=access_level,
            grantees=grantees if request.tier == AccessTier.PRIVATE and grantees else None,
            acl_status=AclStatus.APPLIED if acl_error is None else AclStatus.FAILED,
            acl_error=acl_error,
        )

    async def _transmit(
        self,
        resource_url: str,
        data: bytes,
        content_type: str,
        request_id: str
    ) -> None:
        """PUT 文件字节到资源 URL"""
        try:
            response = await self.session.fetch(
                "PUT",
                resource_url,
                content=data,
                headers={"Content-Type": content_type},
            )
        except httpx.TimeoutException as e:
            logger.error(f"[{request_id}] Upload timeout: {resource_url}")
            raise TransmissionError(
                "Upload timed out",
                details={"resource_url": resource_url}
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"[{request_id}] Upload failed: {resource_url}: {e}")
            raise TransmissionError(
                f"Upload failed: {e}",
                details={"resource_url": resource_url}
            ) from e

        if not response.is_success:
            logger.error(f"[{request_id}] Upload failed ({response.status_code}): {resource_url}")
            raise TransmissionError(
                f"Upload failed: {response.status_code}",
                details={"resource_url": resource_url, "status_code": response.status_code}
            )

        logger.info(f"[{request_id}] File uploaded successfully: {resource_url}")
