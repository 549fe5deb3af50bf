"""
可见性等级 → 目标 ACL 映射

纯函数，无 I/O；相同输入总是得到相同的 ACL
"""
from typing import Iterable

from models.acl import AccessTier, AclSubject, PermissionSet, ResourceAcl

# 公众主体在各等级下的权限
PUBLIC_ACCESS: dict[AccessTier, PermissionSet] = {
    AccessTier.PUBLIC: PermissionSet.read_only(),
    # TODO: 接入社区成员校验后，为已注册用户授予读取权限
    AccessTier.COMMUNITY: PermissionSet.none(),
    AccessTier.PRIVATE: PermissionSet.none(),
}

ACCESS_LEVELS: dict[AccessTier, str] = {
    AccessTier.PUBLIC: "Public: anyone can read this file",
    AccessTier.COMMUNITY: "Community: only registered users will have access (owner-only for now)",
    AccessTier.PRIVATE: "Private: only the owner and listed stakeholders can read this file",
}


def compute_target_acl(
    tier: AccessTier,
    owner_webid: str,
    grantees: Iterable[str] = ()
) -> ResourceAcl:
    """
    计算目标 ACL

    Args:
        tier: 可见性等级
        owner_webid: 所有者 WebID，任何等级下都拥有全部权限
        grantees: 已校验的 WebID，仅 PRIVATE 等级使用，重复项合并

    Returns:
        ResourceAcl
    """
    acl = ResourceAcl()
    acl.set_access(AclSubject.identity(owner_webid), PermissionSet.full())
    acl.set_access(AclSubject.public(), PUBLIC_ACCESS[tier])

    if tier == AccessTier.PRIVATE:
        for webid in grantees:
            # 所有者权限不会被降级
            if webid == owner_webid:
                continue
            acl.set_access(AclSubject.identity(webid), PermissionSet.read_only())

    return acl


def describe_access_level(tier: AccessTier) -> str:
    return ACCESS_LEVELS[tier]
