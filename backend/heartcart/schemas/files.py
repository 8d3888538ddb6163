"""
File storage Pydantic schemas.
"""
from pydantic import Field

from heartcart.schemas.common import CamelModel


class StoredFileResponse(CamelModel):
    key: str
    url: str
    size: int
    content_type: str
    original_name: str


class UploadResponse(CamelModel):
    files: list[StoredFileResponse] = Field(default_factory=list)


class FileListResponse(CamelModel):
    prefix: str
    keys: list[str] = Field(default_factory=list)


class PurgeResponse(CamelModel):
    purged: list[str] = Field(default_factory=list)
