"""
Pytest 配置和 fixtures
"""
import httpx
import pytest
from fastapi.testclient import TestClient
from jose import jwt

from app.dependencies.pod import get_file_handler, get_pod_session
from app.main import app
from services.file_handler_service import FileHandlerService
from services.pod_session import PodSession

WEBID = "https://alice.example/profile/card#me"
POD_BASE = "https://alice.example"
ISSUER = "https://idp.example"
TOKEN_ENDPOINT = "https://idp.example/token"
ACCESS_TOKEN = "access-token-123"


class FakePod:
    """
    模拟 Solid POD 与 OIDC 签发方

    通过 httpx.MockTransport 处理所有出站请求
    """

    def __init__(self) -> None:
        self.resources: dict[str, tuple[str, bytes]] = {}
        self.acls: dict[str, str] = {}
        self.requests: list[tuple[str, str]] = []
        self.token_requests = 0
        self.advertise_acl = True
        self._failures: dict[tuple[str, str], int] = {}
        self._errors: dict[tuple[str, str], Exception] = {}

    def fail(self, method: str, url: str, status_code: int) -> None:
        """让指定请求返回错误状态码"""
        self._failures[(method, url)] = status_code

    def raise_error(self, method: str, url: str, error: Exception) -> None:
        """让指定请求抛出网络异常"""
        self._errors[(method, url)] = error

    def resource_requests(self) -> list[tuple[str, str]]:
        return [
            (method, url) for method, url in self.requests
            if url.startswith(POD_BASE)
        ]

    def handle(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        url = str(request.url)
        self.requests.append((method, url))

        if url == f"{ISSUER}/.well-known/openid-configuration":
            return httpx.Response(200, json={"issuer": ISSUER, "token_endpoint": TOKEN_ENDPOINT})

        if url == TOKEN_ENDPOINT:
            self.token_requests += 1
            if (method, url) in self._failures:
                return httpx.Response(self._failures[(method, url)], json={"error": "invalid_client"})
            header = jwt.get_unverified_header(request.headers["DPoP"])
            assert header["typ"] == "dpop+jwt"
            return httpx.Response(
                200,
                json={"access_token": ACCESS_TOKEN, "expires_in": 3600, "token_type": "DPoP"}
            )

        if request.headers.get("Authorization") != f"DPoP {ACCESS_TOKEN}":
            return httpx.Response(401)

        if (method, url) in self._errors:
            raise self._errors[(method, url)]
        if (method, url) in self._failures:
            return httpx.Response(self._failures[(method, url)])

        if url.endswith(".acl"):
            if method == "GET":
                if url not in self.acls:
                    return httpx.Response(404)
                return httpx.Response(200, text=self.acls[url], headers={"Content-Type": "text/turtle"})
            if method == "PUT":
                self.acls[url] = request.content.decode("utf-8")
                return httpx.Response(201)
            return httpx.Response(405)

        if method == "PUT":
            self.resources[url] = (request.headers.get("Content-Type", ""), request.content)
            return httpx.Response(201)

        if method == "HEAD":
            if url not in self.resources:
                return httpx.Response(404)
            headers = {}
            if self.advertise_acl:
                name = url.rsplit("/", 1)[1]
                headers["Link"] = f'<{name}.acl>; rel="acl"'
            return httpx.Response(200, headers=headers)

        return httpx.Response(405)


@pytest.fixture
def fake_pod():
    """模拟 POD"""
    return FakePod()


@pytest.fixture
def pod_session(fake_pod):
    """连接到模拟 POD 的会话"""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_pod.handle))
    return PodSession(
        webid=WEBID,
        oidc_issuer=ISSUER,
        client_id="client-id",
        client_secret="client-secret",
        http_client=http_client,
    )


@pytest.fixture
def file_handler(tmp_path):
    """使用临时目录的文件处理服务"""
    return FileHandlerService(workspace_root=str(tmp_path / "uploads"))


@pytest.fixture
def client(pod_session, file_handler):
    """测试客户端"""
    app.dependency_overrides[get_pod_session] = lambda: pod_session
    app.dependency_overrides[get_file_handler] = lambda: file_handler
    yield TestClient(app)
    app.dependency_overrides.clear()
