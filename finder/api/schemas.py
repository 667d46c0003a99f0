"""
Request bodies accepted by the POST commands of the file-manager endpoint.
"""
from typing import List, Optional

from pydantic import BaseModel, Field


class FileItem(BaseModel):
    """Reference to an existing entry; `type` is sent by clients but not needed."""
    path: str
    type: Optional[str] = None


class NewFolderRequest(BaseModel):
    name: str


class NewFileRequest(BaseModel):
    name: str


class RenameRequest(BaseModel):
    item: str
    name: str


class MoveRequest(BaseModel):
    # destination directory
    item: str
    items: List[FileItem] = Field(default_factory=list)


class DeleteRequest(BaseModel):
    items: List[FileItem] = Field(default_factory=list)


class ArchiveRequest(BaseModel):
    name: str
    items: List[FileItem] = Field(default_factory=list)


class UnarchiveRequest(BaseModel):
    item: str


class SaveRequest(BaseModel):
    content: str
