"""
Web Access Control (WAC) 文档处理

- 将 ResourceAcl 渲染为 Turtle 格式的 ACL 文档
- 从响应的 Link 头中发现 ACL 文档地址
"""
import re
from typing import Optional
from urllib.parse import urljoin

import httpx

from models.acl import PermissionSet, ResourceAcl

ACL_CONTENT_TYPE = "text/turtle"
ACL_SUFFIX = ".acl"

_PREFIXES = (
    "@prefix acl: <http://www.w3.org/ns/auth/acl#>.\n"
    "@prefix foaf: <http://xmlns.com/foaf/0.1/>.\n"
)

# 固定顺序保证输出确定
_MODES = (
    ("read", "acl:Read"),
    ("write", "acl:Write"),
    ("append", "acl:Append"),
    ("control", "acl:Control"),
)


_IRI_FORBIDDEN = re.compile(r'[\x00-\x20<>"{}|^`\\]')


def is_safe_iri(value: str) -> bool:
    """是否不含 Turtle IRIREF 禁止的字符（空白、<>"{}|^`\\）"""
    return bool(value) and not _IRI_FORBIDDEN.search(value)


def _iri(value: str) -> str:
    if not is_safe_iri(value):
        raise ValueError(f"Unsafe IRI in ACL document: {value!r}")
    return f"<{value}>"


def _modes(permissions: PermissionSet) -> list[str]:
    return [term for field, term in _MODES if getattr(permissions, field)]


def render_acl(resource_url: str, acl: ResourceAcl) -> str:
    """
    渲染 ACL 文档

    每个主体对应一个 acl:Authorization；公众使用 acl:agentClass foaf:Agent

    Raises:
        ValueError: IRI 中含有不允许的字符
    """
    resource_url_iri = _iri(resource_url)
    blocks = [_PREFIXES]
    agent_index = 0

    for entry in acl.as_entries():
        modes = _modes(entry.permissions)
        if not modes:
            continue

        if entry.subject.is_public:
            node = "<#public>"
            subject_line = "    acl:agentClass foaf:Agent;"
        else:
            agent_index += 1
            node = f"<#agent{agent_index}>"
            subject_line = f"    acl:agent {_iri(entry.subject.agent)};"

        blocks.append(
            f"{node}\n"
            f"    a acl:Authorization;\n"
            f"{subject_line}\n"
            f"    acl:accessTo {resource_url_iri};\n"
            f"    acl:mode {', '.join(modes)}.\n"
        )

    return "\n".join(blocks)


def discover_acl_url(resource_url: str, response: httpx.Response) -> Optional[str]:
    """从 Link: <...>; rel="acl" 头中解析 ACL 地址（相对地址按资源 URL 解析）"""
    link = response.links.get("acl")
    if not link or not link.get("url"):
        return None
    return urljoin(resource_url, link["url"])


def default_acl_url(resource_url: str) -> str:
    """资源未声明 ACL 地址时使用的约定地址"""
    return f"{resource_url}{ACL_SUFFIX}"
