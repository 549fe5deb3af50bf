"""
访问控制数据模型
"""
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class AccessTier(str, Enum):
    """可见性等级"""
    PUBLIC = "public"
    COMMUNITY = "community"
    PRIVATE = "private"


class PermissionSet(BaseModel):
    """
    四个相互独立的权限位

    control 表示可以改写 ACL 本身，write 并不隐含 control
    """
    read: bool = False
    write: bool = False
    append: bool = False
    control: bool = False

    class Config:
        frozen = True

    @classmethod
    def full(cls) -> "PermissionSet":
        return cls(read=True, write=True, append=True, control=True)

    @classmethod
    def read_only(cls) -> "PermissionSet":
        return cls(read=True)

    @classmethod
    def none(cls) -> "PermissionSet":
        return cls()

    def is_empty(self) -> bool:
        return not (self.read or self.write or self.append or self.control)


class AclSubject(BaseModel):
    """
    ACL 主体：公众，或一个具体身份（WebID）

    agent 为 None 表示公众
    """
    agent: Optional[str] = None

    class Config:
        frozen = True

    @classmethod
    def public(cls) -> "AclSubject":
        return cls()

    @classmethod
    def identity(cls, webid: str) -> "AclSubject":
        return cls(agent=webid)

    @property
    def is_public(self) -> bool:
        return self.agent is None


class AccessControlEntry(BaseModel):
    """一个主体及其权限"""
    subject: AclSubject
    permissions: PermissionSet

    class Config:
        frozen = True


class ResourceAcl(BaseModel):
    """
    附加在单个资源上的完整 ACL

    每个主体最多一条记录；同一主体后写覆盖先写。
    全部为 False 的权限等价于没有记录，因此会移除该主体。
    """
    entries: Dict[AclSubject, PermissionSet] = Field(default_factory=dict)

    def set_access(self, subject: AclSubject, permissions: PermissionSet) -> None:
        """设置某主体的权限（后写覆盖）"""
        if permissions.is_empty():
            self.entries.pop(subject, None)
        else:
            self.entries[subject] = permissions

    def get_access(self, subject: AclSubject) -> PermissionSet:
        return self.entries.get(subject, PermissionSet.none())

    def replace_all(self, other: "ResourceAcl") -> None:
        """用另一份 ACL 整体替换当前记录"""
        self.entries = dict(other.entries)

    def as_entries(self) -> List[AccessControlEntry]:
        """按插入顺序返回所有记录"""
        return [
            AccessControlEntry(subject=subject, permissions=permissions)
            for subject, permissions in self.entries.items()
        ]

    @property
    def public_access(self) -> PermissionSet:
        return self.get_access(AclSubject.public())

    @property
    def agents(self) -> List[str]:
        return [subject.agent for subject in self.entries if not subject.is_public]

    def __len__(self) -> int:
        return len(self.entries)
