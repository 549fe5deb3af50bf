"""
上传编排服务测试
"""
import httpx
import pytest

from conftest import WEBID
from models import AccessTier, AclStatus, UploadRequest, UploadStatus
from services.errors import TransmissionError, ValidationError
from services.upload_service import PodUploadService

BOB = "https://bob.example/profile#me"


@pytest.fixture
def uploader(pod_session):
    return PodUploadService(pod_session)


def make_request(**overrides) -> UploadRequest:
    values = {
        "file_bytes": b"hello pod",
        "file_name": "my notes.txt",
        "tier": AccessTier.PUBLIC,
        "owner_webid": WEBID,
    }
    values.update(overrides)
    return UploadRequest(**values)


async def test_public_upload(uploader, fake_pod):
    result = await uploader.upload(make_request(), request_id="req-1")

    url = "https://alice.example/public/my_notes.txt"
    assert result.request_id == "req-1"
    assert result.status == UploadStatus.COMPLETED
    assert result.acl_status == AclStatus.APPLIED
    assert result.resource_url == url
    assert result.tier == AccessTier.PUBLIC
    assert result.grantees is None
    assert fake_pod.resources[url] == ("text/plain", b"hello pod")
    assert "acl:agentClass foaf:Agent;" in fake_pod.acls[f"{url}.acl"]


async def test_steps_run_in_order(uploader, fake_pod):
    await uploader.upload(make_request(file_name="a.png"))

    url = "https://alice.example/public/a.png"
    assert fake_pod.resource_requests() == [
        ("PUT", url),
        ("HEAD", url),
        ("GET", f"{url}.acl"),
        ("PUT", f"{url}.acl"),
    ]


async def test_private_upload_reports_applied_grantees(uploader, fake_pod):
    result = await uploader.upload(
        make_request(file_name="plan.pdf", tier=AccessTier.PRIVATE, grantees=[BOB])
    )

    assert result.resource_url == "https://alice.example/private/plan.pdf"
    assert result.grantees == [BOB]
    assert f"acl:agent <{BOB}>;" in fake_pod.acls[f"{result.resource_url}.acl"]


async def test_acl_failure_is_partial_success(uploader, fake_pod):
    """文件已写入但 ACL 保存失败时，返回部分成功而不是抛出异常"""
    url = "https://alice.example/public/my_notes.txt"
    fake_pod.fail("PUT", f"{url}.acl", 500)

    result = await uploader.upload(make_request())

    assert result.status == UploadStatus.PARTIAL_SUCCESS
    assert result.acl_status == AclStatus.FAILED
    assert not result.acl_applied
    assert result.acl_error["error_code"] == "ACL_ERROR"
    assert url in fake_pod.resources


async def test_transmission_failure_skips_acl(uploader, fake_pod):
    url = "https://alice.example/public/my_notes.txt"
    fake_pod.fail("PUT", url, 507)

    with pytest.raises(TransmissionError) as exc_info:
        await uploader.upload(make_request())

    assert exc_info.value.details["status_code"] == 507
    assert fake_pod.resource_requests() == [("PUT", url)]


async def test_transmission_network_error(uploader, fake_pod):
    url = "https://alice.example/public/my_notes.txt"
    fake_pod.raise_error("PUT", url, httpx.ConnectError("connection reset"))

    with pytest.raises(TransmissionError):
        await uploader.upload(make_request())


async def test_empty_file_name_is_rejected_before_network(uploader, fake_pod):
    with pytest.raises(ValidationError):
        await uploader.upload(make_request(file_name=""))

    assert fake_pod.requests == []


@pytest.mark.parametrize("file_name", [".", ".."])
async def test_dot_segment_file_name_is_rejected_before_network(uploader, fake_pod, file_name):
    with pytest.raises(ValidationError):
        await uploader.upload(make_request(file_name=file_name))

    assert fake_pod.requests == []


async def test_empty_file_is_rejected_before_network(uploader, fake_pod):
    with pytest.raises(ValidationError) as exc_info:
        await uploader.upload(make_request(file_bytes=b""))

    assert exc_info.value.message == "File is empty"
    assert fake_pod.requests == []


def test_upload_request_schema_example_lives_on_the_model():
    schema = UploadRequest.model_json_schema()

    assert schema["example"]["file_name"] == "report.pdf"
    assert "example" not in schema["properties"]["file_name"]
