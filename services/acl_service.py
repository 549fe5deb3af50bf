"""
访问控制服务 (ACL Service)

负责将目标 ACL 同步到 POD 上的资源：
1. 发现资源的 ACL 文档地址
2. 读取现有 ACL；不存在时走新建路径
3. 整体替换为目标 ACL 并保存

三个可见性等级共用同一条路径，仅目标 ACL 不同
"""
import logging

import httpx

from models.acl import ResourceAcl
from services.errors import AclError, AclNotFoundError
from services.pod_session import PodSession
from services.wac import ACL_CONTENT_TYPE, default_acl_url, discover_acl_url, render_acl

logger = logging.getLogger(__name__)


class AccessControlService:
    """
    ACL 同步服务

    读取与保存之间没有条件写入，对同一资源的并发同步可能丢失更新，
    需要互斥的调用方应在外部按 URL 串行化
    """

    def __init__(self, session: PodSession) -> None:
        self.session = session

    async def apply_acl(
        self,
        resource_url: str,
        target_acl: ResourceAcl,
        request_id: str = "-"
    ) -> ResourceAcl:
        """
        将目标 ACL 应用到资源

        Args:
            resource_url: 资源 URL
            target_acl: 目标 ACL
            request_id: 请求 ID

        Returns:
            实际保存的 ACL

        Raises:
            AclError: 发现、读取或保存失败
        """
        acl_url = await self.get_acl_url(resource_url, request_id)

        acl = ResourceAcl()
        try:
            await self.fetch_acl(acl_url, request_id)
            logger.info(f"[{request_id}] Overwriting existing ACL: {acl_url}")
        except AclNotFoundError:
            logger.info(f"[{request_id}] No ACL found, creating new ACL: {acl_url}")

        acl.replace_all(target_acl)
        await self.save_acl(acl_url, resource_url, acl, request_id)

        logger.info(f"[{request_id}] Applied ACL with {len(acl)} entries to {resource_url}")
        return acl

    async def get_acl_url(self, resource_url: str, request_id: str = "-") -> str:
        """
        通过 HEAD 请求的 Link 头发现 ACL 地址

        资源尚不支持发现时回退到约定地址
        """
        try:
            response = await self.session.fetch("HEAD", resource_url)
        except httpx.HTTPError as e:
            logger.error(f"[{request_id}] ACL discovery failed for {resource_url}: {e}")
            raise AclError(
                f"ACL discovery failed: {e}",
                details={"resource_url": resource_url}
            ) from e

        if response.status_code in (401, 403) or response.status_code >= 500:
            logger.error(f"[{request_id}] ACL discovery returned {response.status_code} for {resource_url}")
            raise AclError(
                f"ACL discovery failed: {response.status_code}",
                details={"resource_url": resource_url, "status_code": response.status_code}
            )

        acl_url = discover_acl_url(resource_url, response) if response.is_success else None
        if acl_url is None:
            acl_url = default_acl_url(resource_url)
            logger.debug(f"[{request_id}] No ACL link advertised, using {acl_url}")
        return acl_url

    async def fetch_acl(self, acl_url: str, request_id: str = "-") -> str:
        """
        读取 ACL 文档

        Raises:
            AclNotFoundError: 404，ACL 文档不存在
            AclError: 其他失败（不会被当作不存在处理）
        """
        try:
            response = await self.session.fetch(
                "GET", acl_url, headers={"Accept": ACL_CONTENT_TYPE}
            )
        except httpx.HTTPError as e:
            logger.error(f"[{request_id}] Failed to fetch ACL {acl_url}: {e}")
            raise AclError(f"Failed to fetch ACL: {e}", details={"acl_url": acl_url}) from e

        if response.status_code == 404:
            raise AclNotFoundError(f"ACL not found: {acl_url}", details={"acl_url": acl_url})

        if not response.is_success:
            logger.error(f"[{request_id}] Fetching ACL {acl_url} returned {response.status_code}")
            raise AclError(
                f"Failed to fetch ACL: {response.status_code}",
                details={"acl_url": acl_url, "status_code": response.status_code}
            )

        return response.text

    async def save_acl(
        self,
        acl_url: str,
        resource_url: str,
        acl: ResourceAcl,
        request_id: str = "-"
    ) -> None:
        """保存 ACL 文档（整体替换）"""
        try:
            body = render_acl(resource_url, acl)
        except ValueError as e:
            logger.error(f"[{request_id}] Refusing to save ACL {acl_url}: {e}")
            raise AclError(str(e), details={"acl_url": acl_url}) from e

        try:
            response = await self.session.fetch(
                "PUT",
                acl_url,
                content=body.encode("utf-8"),
                headers={"Content-Type": ACL_CONTENT_TYPE},
            )
        except httpx.HTTPError as e:
            logger.error(f"[{request_id}] Failed to save ACL {acl_url}: {e}")
            raise AclError(f"Failed to save ACL: {e}", details={"acl_url": acl_url}) from e

        if not response.is_success:
            logger.error(f"[{request_id}] Saving ACL {acl_url} returned {response.status_code}")
            raise AclError(
                f"Failed to save ACL: {response.status_code}",
                details={"acl_url": acl_url, "status_code": response.status_code}
            )
