"""
Wire and Form Schemas - 接口与表单模式
本模块使用 pydantic 声明与笔记服务交互的数据结构：
- Note 及各类响应信封：传输层用它们校验服务端返回的数据。
- CreateNoteInput / UpdateNoteInput：表单提交前的声明式校验规则。
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool


class Note(BaseModel):
    """服务端笔记的只读副本"""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    title: str
    content: str
    is_published: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class NotesListResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: str
    count: int = Field(ge=0)
    notes: List[Note] = Field(default_factory=list)


class NoteData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    note: Note


class NoteResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: str
    data: NoteData


class GenericResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: str
    message: Optional[str] = None


# ------------------------------- Forms ---------------------------------------


class CreateNoteInput(BaseModel):
    """创建笔记表单，is_published 默认为未发布"""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    is_published: Optional[StrictBool] = False


class UpdateNoteInput(BaseModel):
    """更新笔记表单，支持部分更新；给出的字段仍然不能为空"""

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(default=None, min_length=1)
    content: Optional[str] = Field(default=None, min_length=1)
    is_published: Optional[StrictBool] = None
