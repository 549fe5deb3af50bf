"""
网关错误类型

每种错误都能跨越上传编排层被调用方区分，以便采取不同的恢复策略：
修正输入、修正凭证、重试传输或重试权限设置
"""
from typing import Any, Dict, Optional


class PodGatewayError(Exception):
    """
    所有网关错误的基类

    Attributes:
        message: 人类可读的错误信息
        error_code: 机器可读的错误代码
        details: 额外的上下文信息
    """

    error_code = "POD_GATEWAY_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """转换为 API 响应格式"""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(PodGatewayError):
    """配置错误（致命，不可重试）：WebID 格式错误、缺少凭证配置"""

    error_code = "CONFIGURATION_ERROR"


class ValidationError(PodGatewayError):
    """请求校验失败，在任何网络 I/O 之前拒绝"""

    error_code = "VALIDATION_ERROR"


class AuthenticationError(PodGatewayError):
    """无法建立已认证的传输通道"""

    error_code = "AUTHENTICATION_ERROR"


class TransmissionError(PodGatewayError):
    """文件字节上传失败，资源未写入"""

    error_code = "TRANSMISSION_ERROR"


class AclError(PodGatewayError):
    """ACL 读取/创建/保存失败，此时文件字节已经写入"""

    error_code = "ACL_ERROR"


class AclNotFoundError(AclError):
    """远端不存在 ACL 文档（与其他读取失败区分）"""

    error_code = "ACL_NOT_FOUND"
