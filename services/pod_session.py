"""
POD 会话服务 (Pod Session)

负责建立与 Solid POD 之间的已认证传输通道：
1. 通过 OIDC 发现获取令牌端点
2. 使用客户端凭证 (client_credentials) 获取 DPoP 绑定的访问令牌
3. 为每个请求签发 DPoP 证明并附加认证头

会话在首次使用时延迟建立，之后在进程内复用
"""
import asyncio
import base64
import hashlib
import logging
import time
import uuid
from typing import Any, Dict, Optional

import httpx
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from jose import jwt

from config.settings import Settings
from services.errors import AuthenticationError, ConfigurationError
from services.naming import pod_base_url

logger = logging.getLogger(__name__)

DPOP_ALGORITHM = "ES256"


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


class DPoPKey:
    """临时 P-256 密钥对，用于签发 DPoP 证明"""

    def __init__(self) -> None:
        private_key = ec.generate_private_key(ec.SECP256R1())
        self._pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode("ascii")

        numbers = private_key.public_key().public_numbers()
        self.public_jwk: Dict[str, str] = {
            "kty": "EC",
            "crv": "P-256",
            "x": _b64url(numbers.x.to_bytes(32, "big")),
            "y": _b64url(numbers.y.to_bytes(32, "big")),
        }

    def proof(self, method: str, url: str, access_token: Optional[str] = None) -> str:
        """
        签发 DPoP 证明 JWT

        Args:
            method: HTTP 方法
            url: 目标 URL（不含查询和片段）
            access_token: 访问令牌，访问资源时写入 ath 声明
        """
        claims: Dict[str, Any] = {
            "htm": method.upper(),
            "htu": url.split("#")[0].split("?")[0],
            "iat": int(time.time()),
            "jti": str(uuid.uuid4()),
        }
        if access_token:
            claims["ath"] = _b64url(hashlib.sha256(access_token.encode("ascii")).digest())

        return jwt.encode(
            claims,
            self._pem,
            algorithm=DPOP_ALGORITHM,
            headers={"typ": "dpop+jwt", "jwk": self.public_jwk},
        )


class PodSession:
    """
    POD 会话

    显式构建并按引用传递；认证过程由锁保护，避免并发重复初始化
    """

    def __init__(
        self,
        webid: Optional[str],
        oidc_issuer: Optional[str],
        client_id: Optional[str],
        client_secret: Optional[str],
        base_url_override: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: int = 30,
        refresh_margin: int = 60,
    ):
        """
        初始化会话（不进行任何网络 I/O）

        Args:
            webid: POD 所有者 WebID
            oidc_issuer: OIDC 签发方 URL
            client_id: 客户端 ID
            client_secret: 客户端密钥
            base_url_override: 显式配置的 POD 根容器 URL
            http_client: 可注入的 httpx 客户端（测试时使用 MockTransport）
            timeout: HTTP 超时（秒）
            refresh_margin: 令牌到期前多少秒重新获取
        """
        self._webid = webid
        self._oidc_issuer = oidc_issuer
        self._client_id = client_id
        self._client_secret = client_secret
        self._base_url_override = base_url_override
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._refresh_margin = refresh_margin

        self._lock = asyncio.Lock()
        self._dpop_key: Optional[DPoPKey] = None
        self._access_token: Optional[str] = None
        self._expires_at = 0.0

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None
    ) -> "PodSession":
        return cls(
            webid=settings.solid_webid,
            oidc_issuer=settings.solid_oidc_issuer,
            client_id=settings.solid_client_id,
            client_secret=settings.solid_client_secret,
            base_url_override=settings.solid_pod_base_url,
            http_client=http_client,
            timeout=settings.http_timeout,
            refresh_margin=settings.solid_token_refresh_margin,
        )

    @property
    def webid(self) -> str:
        if not self._webid:
            raise ConfigurationError("SOLID_WEBID is not configured")
        return self._webid

    @property
    def base_url(self) -> str:
        return pod_base_url(self._webid, self._base_url_override)

    @property
    def is_authenticated(self) -> bool:
        return (
            self._access_token is not None
            and time.monotonic() < self._expires_at - self._refresh_margin
        )

    async def ensure_authenticated(self) -> None:
        """确保存在有效的访问令牌（首次使用或即将过期时获取）"""
        if self.is_authenticated:
            return

        async with self._lock:
            # 等锁期间可能已被其他协程完成
            if self.is_authenticated:
                return
            await self._authenticate()

    async def _authenticate(self) -> None:
        missing = [
            name for name, value in (
                ("SOLID_WEBID", self._webid),
                ("SOLID_OIDC_ISSUER", self._oidc_issuer),
                ("SOLID_CLIENT_ID", self._client_id),
                ("SOLID_CLIENT_SECRET", self._client_secret),
            ) if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing credential configuration: {', '.join(missing)}",
                details={"missing": missing}
            )

        if self._dpop_key is None:
            self._dpop_key = DPoPKey()

        token_endpoint = await self._discover_token_endpoint()
        logger.info(f"Requesting access token from {token_endpoint}")

        try:
            response = await self._client.post(
                token_endpoint,
                data={"grant_type": "client_credentials", "scope": "webid"},
                auth=(self._client_id, self._client_secret),
                headers={"DPoP": self._dpop_key.proof("POST", token_endpoint)},
            )
            response.raise_for_status()
            token = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Token endpoint returned error {e.response.status_code}")
            raise AuthenticationError(
                f"Token request rejected: {e.response.status_code}",
                details={"token_endpoint": token_endpoint, "status_code": e.response.status_code}
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Token request failed: {e}")
            raise AuthenticationError(
                f"Token request failed: {e}",
                details={"token_endpoint": token_endpoint}
            ) from e

        access_token = token.get("access_token")
        if not access_token:
            raise AuthenticationError(
                "Token response did not contain an access token",
                details={"token_endpoint": token_endpoint}
            )

        self._access_token = access_token
        self._expires_at = time.monotonic() + int(token.get("expires_in", 300))
        logger.info(f"Authenticated to Solid POD as {self._webid}")

    async def _discover_token_endpoint(self) -> str:
        config_url = f"{self._oidc_issuer.rstrip('/')}/.well-known/openid-configuration"
        try:
            response = await self._client.get(config_url)
            response.raise_for_status()
            token_endpoint = response.json().get("token_endpoint")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"OIDC discovery failed for {self._oidc_issuer}: {e}")
            raise AuthenticationError(
                f"OIDC discovery failed: {e}",
                details={"issuer": self._oidc_issuer}
            ) from e

        if not token_endpoint:
            raise AuthenticationError(
                "OIDC configuration has no token_endpoint",
                details={"issuer": self._oidc_issuer}
            )
        return token_endpoint

    async def fetch(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        发送已认证的请求

        网络错误以 httpx.HTTPError 原样抛出，由调用方归类
        """
        await self.ensure_authenticated()

        headers = dict(kwargs.pop("headers", None) or {})
        headers["Authorization"] = f"DPoP {self._access_token}"
        headers["DPoP"] = self._dpop_key.proof(method, url, self._access_token)

        return await self._client.request(method, url, headers=headers, **kwargs)

    async def close(self) -> None:
        """关闭 HTTP 客户端"""
        await self._client.aclose()
        logger.info("PodSession closed")
