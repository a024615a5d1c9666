"""
Core Domain Models and Enums - 核心领域模型与枚举
本模块定义了客户端同步层使用的核心数据结构。
使用 dataclasses 来创建简洁、类型安全的数据类；服务端笔记本身见 schemas.Note。
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .exceptions import NotesApiError
from .schemas import Note

NOTES_NAMESPACE = "notes"
DEFAULT_PAGE_SIZE = 10  # 必须与服务端默认的 limit 保持一致


class EditorMode(Enum):
    """编辑界面的模式"""
    CREATE = "create"
    UPDATE = "update"


class MutationStatus(Enum):
    """一次变更提交的结果状态"""
    SUCCESS = "success"
    INVALID = "invalid"   # 本地校验失败，没有发出请求
    FAILED = "failed"     # 请求失败
    IGNORED = "ignored"   # 同一操作正在进行中，重复提交被忽略


class NotificationLevel(Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class PageQuery:
    """
    分页查询键
    一个页码与固定的分页大小组成一个查询，namespace 用于整体失效。
    """
    page: int
    page_size: int = DEFAULT_PAGE_SIZE
    namespace: str = NOTES_NAMESPACE

    def __post_init__(self):
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {self.page_size}")


@dataclass(frozen=True)
class PageResult:
    """某一页的拉取结果，total_count 是所有页的总数"""
    notes: Tuple[Note, ...]
    total_count: int

    def note_ids(self) -> List[str]:
        return [note.id for note in self.notes]

    def find(self, note_id: str) -> Optional[Note]:
        for note in self.notes:
            if note.id == note_id:
                return note
        return None


@dataclass
class CacheEntry:
    """
    同步器内部的每页缓存记录，只允许 QueryCache 修改。
    in_flight 不为空时表示该页有一个正在进行的请求，同一页最多一个。
    """
    query: PageQuery
    result: Optional[PageResult] = None
    error: Optional[NotesApiError] = None
    is_stale: bool = False
    updated_at: Optional[float] = None
    in_flight: Optional[asyncio.Task] = field(default=None, repr=False)
    dispatched: bool = False    # in-flight 请求是否已真正发出
    refetch_on_settle: bool = False

    @property
    def is_fetching(self) -> bool:
        return self.in_flight is not None


@dataclass(frozen=True)
class PageView:
    """
    渲染用的只读视图，所有显示标志都由 CacheEntry 当场推导。
    占位数据（上一页的结果）不能用于计算总页数，因此 total_count 为 None。
    """
    query: PageQuery
    notes: Tuple[Note, ...] = ()
    total_count: Optional[int] = None
    is_placeholder: bool = False
    is_loading: bool = False
    is_fetching: bool = False
    is_stale: bool = False
    error: Optional[NotesApiError] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def is_empty(self) -> bool:
        return not self.is_loading and not self.notes


@dataclass(frozen=True)
class MutationResult:
    """变更提交结果：成功载荷或类型化的错误"""
    status: MutationStatus
    note: Optional[Note] = None
    message: Optional[str] = None
    error: Optional[NotesApiError] = None
    field_errors: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status is MutationStatus.SUCCESS


@dataclass(frozen=True)
class Notification:
    """发给通知接收端（toast）的一条消息"""
    level: NotificationLevel
    message: str
    created_at: float = field(default_factory=time.time)


@dataclass
class EditorSession:
    """
    编辑界面（创建/更新表单）的会话数据
    草稿只在提交期间短暂存在，成功或失败后都会随界面关闭而丢弃。
    """
    mode: EditorMode
    note_id: Optional[str] = None
    draft: Dict[str, Any] = field(default_factory=dict)
    field_errors: Dict[str, List[str]] = field(default_factory=dict)
    is_open: bool = True

    def close(self):
        self.is_open = False
        self.draft = {}
        self.field_errors = {}
