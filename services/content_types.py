"""根据文件扩展名解析 MIME 类型"""

DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES: dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "pdf": "application/pdf",
    "txt": "text/plain",
    "json": "application/json",
}


def resolve_content_type(file_name: str) -> str:
    """取最后一个 '.' 之后的小写后缀查表，未知或无扩展名时返回通用二进制类型"""
    if "." not in file_name:
        return DEFAULT_CONTENT_TYPE
    extension = file_name.rsplit(".", 1)[1].lower()
    return CONTENT_TYPES.get(extension, DEFAULT_CONTENT_TYPE)
