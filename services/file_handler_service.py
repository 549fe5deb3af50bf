"""
文件处理服务 - 本地暂存上传文件

负责：
1. 为每个上传请求创建独立的暂存目录
2. 将上传流写入暂存文件
3. 无论上传成功与否都清理暂存目录
4. 定期清理遗留的过期暂存目录
"""
import asyncio
import logging
import shutil
import time
import uuid
from pathlib import Path
from typing import Optional, Protocol

from config.settings import settings
from services.naming import safe_file_name

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class AsyncReadable(Protocol):
    async def read(self, size: int = -1) -> bytes: ...


class FileHandlerService:
    """文件处理服务"""

    def __init__(self, workspace_root: str = "./uploads"):
        """
        初始化文件处理服务

        Args:
            workspace_root: 暂存根目录（不存在时在首次使用时创建）
        """
        self.workspace_root = Path(workspace_root)
        logger.info(f"File handler initialized with staging root: {self.workspace_root}")

    def create_workspace(self, request_id: Optional[str] = None) -> Path:
        """
        为请求创建独立的暂存目录

        Args:
            request_id: 请求 ID，如果为 None 则自动生成

        Returns:
            暂存目录路径
        """
        if not request_id:
            request_id = str(uuid.uuid4())

        workspace = self.workspace_root / request_id
        workspace.mkdir(parents=True, exist_ok=True)

        logger.debug(f"Created workspace: {workspace}")
        return workspace

    async def stage_upload(
        self,
        source: AsyncReadable,
        file_name: str,
        workspace: Path,
        request_id: str
    ) -> Path:
        """
        将上传流分块写入暂存文件

        Args:
            source: 上传文件流（如 fastapi.UploadFile）
            file_name: 原始文件名
            workspace: 暂存目录
            request_id: 请求 ID

        Returns:
            暂存文件路径

        Raises:
            ValidationError: 文件名清理后无法作为文件名使用
        """
        local_path = workspace / safe_file_name(file_name)

        size = 0
        with local_path.open("wb") as out:
            while True:
                chunk = await source.read(CHUNK_SIZE)
                if not chunk:
                    break
                out.write(chunk)
                size += len(chunk)

        logger.info(f"[{request_id}] Staged upload: {local_path} ({size} bytes)")
        return local_path

    def cleanup_workspace(self, workspace: Path, request_id: str) -> None:
        """
        清理暂存目录

        Args:
            workspace: 要清理的暂存目录
            request_id: 请求 ID
        """
        if not workspace or not workspace.exists():
            return

        try:
            shutil.rmtree(workspace)
            logger.debug(f"[{request_id}] Cleaned up workspace: {workspace}")
        except OSError as e:
            logger.error(f"[{request_id}] Failed to cleanup workspace {workspace}: {e}")

    async def start_cleanup_daemon(
        self,
        interval_seconds: int = 300,
        max_age_seconds: int = 3600
    ) -> None:
        """
        启动清理守护进程

        Args:
            interval_seconds: 清理间隔（默认 5 分钟）
            max_age_seconds: 暂存目录最大保留时间（默认 1 小时）
        """
        logger.info(f"Starting cleanup daemon (interval={interval_seconds}s, max_age={max_age_seconds}s)")

        while True:
            await asyncio.sleep(interval_seconds)
            try:
                self.run_cleanup(max_age_seconds)
            except OSError as e:
                logger.error(f"Cleanup daemon error: {e}", exc_info=True)

    def run_cleanup(self, max_age_seconds: int) -> int:
        """
        执行一次清理

        Returns:
            删除的暂存目录数量
        """
        if not self.workspace_root.exists():
            return 0

        cutoff_time = time.time() - max_age_seconds
        cleaned_count = 0

        for job_dir in self.workspace_root.iterdir():
            if not job_dir.is_dir():
                continue

            if job_dir.stat().st_mtime < cutoff_time:
                shutil.rmtree(job_dir)
                cleaned_count += 1
                logger.info(f"Cleaned expired workspace: {job_dir.name}")

        if cleaned_count > 0:
            logger.info(f"Cleanup summary: removed {cleaned_count} workspaces")
        return cleaned_count


# 创建全局单例（从配置文件读取设置）
file_handler_service = FileHandlerService(workspace_root=settings.upload_tmp_dir)
