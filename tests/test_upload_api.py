"""
上传与登录端点测试
"""
import json

from fastapi import status
from fastapi.testclient import TestClient

from app.main import app
from conftest import POD_BASE, TOKEN_ENDPOINT, WEBID

BOB = "https://bob.example/profile#me"
CAROL = "https://carol.example/profile#me"


def upload(client, tier=None, grantees=None, file_name="my file.txt", content=b"hello"):
    data = {}
    if tier is not None:
        data["tier"] = tier
    if grantees is not None:
        data["grantees"] = grantees
    return client.post(
        "/v1/pod/upload",
        files={"file": (file_name, content, "application/octet-stream")},
        data=data,
    )


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "healthy"


def test_login(client, fake_pod):
    response = client.post("/v1/pod/login")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["webid"] == WEBID
    assert data["pod_base_url"] == POD_BASE
    assert fake_pod.token_requests == 1


def test_login_with_rejected_credentials(client, fake_pod):
    fake_pod.fail("POST", TOKEN_ENDPOINT, 401)

    response = client.post("/v1/pod/login")

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert response.json()["error_code"] == "AUTHENTICATION_ERROR"


def test_upload_defaults_to_public(client, fake_pod):
    response = upload(client)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "COMPLETED"
    assert data["tier"] == "public"
    assert data["resource_url"] == f"{POD_BASE}/public/my_file.txt"
    assert data["acl_status"] == "APPLIED"
    assert "grantees" not in data
    assert "acl_error" not in data
    assert fake_pod.resources[data["resource_url"]] == ("text/plain", b"hello")


def test_upload_free_tier_alias(client):
    response = upload(client, tier="FREE")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["tier"] == "public"


def test_upload_community(client, fake_pod):
    response = upload(client, tier="Community", file_name="photo.png")

    data = response.json()
    assert data["resource_url"] == f"{POD_BASE}/community/photo.png"
    assert "foaf:Agent" not in fake_pod.acls[f"{data['resource_url']}.acl"]


def test_upload_private_with_json_grantees(client, fake_pod):
    response = upload(client, tier="private", grantees=json.dumps([BOB, BOB, "not-a-url", CAROL]))

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["resource_url"] == f"{POD_BASE}/private/my_file.txt"
    assert data["grantees"] == [BOB, CAROL]


def test_upload_private_with_comma_separated_grantees(client):
    response = upload(client, tier="private", grantees=f"{BOB}, {CAROL}")

    assert response.json()["grantees"] == [BOB, CAROL]


def test_upload_private_without_grantees_is_owner_only(client):
    response = upload(client, tier="private")

    assert response.status_code == status.HTTP_200_OK
    assert "grantees" not in response.json()


def test_private_with_only_invalid_grantees_is_rejected(client, fake_pod):
    response = upload(client, tier="private", grantees=json.dumps(["not-a-url"]))

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    data = response.json()
    assert data["error_code"] == "VALIDATION_ERROR"
    assert data["details"]["rejected"] == ["not-a-url"]
    assert fake_pod.requests == []


def test_unrecognized_tier_is_rejected(client, fake_pod):
    response = upload(client, tier="premium")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "premium" in response.json()["message"]
    assert fake_pod.requests == []


def test_missing_file_is_rejected(client, fake_pod):
    response = client.post("/v1/pod/upload", data={"tier": "public"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "No file provided"
    assert fake_pod.requests == []


def test_acl_failure_returns_partial_success(client, fake_pod):
    fake_pod.fail("PUT", f"{POD_BASE}/public/my_file.txt.acl", 500)

    response = upload(client)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "PARTIAL_SUCCESS"
    assert data["acl_status"] == "FAILED"
    assert data["acl_error"]["error_code"] == "ACL_ERROR"


def test_transmission_failure(client, fake_pod):
    fake_pod.fail("PUT", f"{POD_BASE}/public/my_file.txt", 500)

    response = upload(client)

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert response.json()["error_code"] == "TRANSMISSION_ERROR"


def test_staging_workspace_is_cleaned_up(client, fake_pod, file_handler):
    upload(client)
    fake_pod.fail("PUT", f"{POD_BASE}/public/my_file.txt", 500)
    upload(client)

    assert list(file_handler.workspace_root.iterdir()) == []


def test_grantee_cannot_inject_acl_statements(client, fake_pod):
    injected = "https://evil.example/p#me> ; acl:mode acl:Control . <#x> a acl:Authorization ; acl:agent <https://evil.example/p#me"

    response = upload(client, tier="private", grantees=json.dumps([injected]))

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["acl_status"] == "APPLIED"
    [grantee] = data["grantees"]
    assert ">" not in grantee
    assert " " not in grantee

    document = fake_pod.acls[f"{data['resource_url']}.acl"]
    assert "acl:Control . <#x>" not in document
    assert document.count(", acl:Control.") == 1
    assert document.count("acl:mode acl:Read.") == 1
    assert document.count("a acl:Authorization;") == 2


def test_dot_segment_file_name_is_rejected(client, fake_pod, file_handler):
    response = upload(client, file_name="..")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error_code"] == "VALIDATION_ERROR"
    assert fake_pod.requests == []
    assert list(file_handler.workspace_root.iterdir()) == []


def test_empty_file_is_rejected(client, fake_pod):
    response = upload(client, content=b"")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "File is empty"
    assert fake_pod.requests == []


def test_lifespan_stops_cleanup_daemon_before_closing_session():
    with TestClient(app) as lifespan_client:
        assert lifespan_client.get("/health").status_code == status.HTTP_200_OK
        session = app.state.pod_session

    assert session._client.is_closed
