"""
Notes API Service Layer - 笔记服务传输层
本模块采用仓储模式（Repository Pattern）封装了对笔记 REST 服务的所有网络请求。
- INoteRepository: 定义了与笔记数据交互的统一接口。
- NotesApiClient: 实现了该接口，负责具体的 HTTP 请求和响应处理。
传输层不做任何重试；所有失败都归一化为 NotesApiError 后抛出。
"""

import asyncio
import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type, TypeVar
from urllib.parse import quote

import aiohttp
from pydantic import BaseModel, ValidationError

from ..core.exceptions import (
    NotesApplicationError,
    NotesTransportError,
    NotesUnexpectedError,
    PageSizeMismatchError,
    error_message_from_body,
)
from ..core.log import logger
from ..core.models import DEFAULT_PAGE_SIZE, PageResult
from ..core.schemas import GenericResponse, Note, NoteResponse, NotesListResponse

ModelT = TypeVar("ModelT", bound=BaseModel)


class INoteRepository(ABC):
    """
    笔记仓储接口
    定义了所有与笔记服务交互的标准操作。
    """

    @abstractmethod
    async def list_notes(self, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> PageResult:
        """
        获取一页笔记。

        :param page: 页码，从 1 开始。
        :param limit: 每页数量。
        :return: 该页的笔记以及所有页的总数。
        """
        pass

    @abstractmethod
    async def get_note(self, note_id: str) -> Note:
        """获取单条笔记"""
        pass

    @abstractmethod
    async def create_note(self, payload: Dict[str, Any]) -> Note:
        """
        创建一个新的笔记。

        :param payload: 已通过校验的 {title, content, is_published?}。
        :return: 服务端创建后的笔记。
        """
        pass

    @abstractmethod
    async def update_note(self, note_id: str, payload: Dict[str, Any]) -> Note:
        """
        部分更新一个已存在的笔记。

        :param note_id: 要更新的笔记的唯一ID。
        :param payload: 只包含需要修改的字段。
        :return: 更新后的笔记。
        """
        pass

    @abstractmethod
    async def delete_note(self, note_id: str) -> str:
        """删除笔记，返回服务端的提示信息"""
        pass

    async def close(self):
        """释放底层资源，默认无事可做"""
        pass


class NotesApiClient(INoteRepository):
    """
    笔记 API 客户端实现
    负责与笔记后端进行实际的 HTTP 通信。
    """

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 30.0):
        """
        初始化 API 客户端。

        :param base_url: 笔记服务的基础 URL，例如 http://localhost:8080/api/v1。
        :param token: 可选的 Bearer Token。
        :param timeout: 单个请求的总超时时间（秒）。
        """
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.timeout = timeout
        self.session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """
        获取 aiohttp.ClientSession 实例。
        延迟初始化，确保只在需要时创建一个共享的会话。
        """
        if self.session is None or self.session.closed:
            headers = {
                'Content-Type': 'application/json',
                'Accept': 'application/json',
            }
            if self.token:
                headers['Authorization'] = f'Bearer {self.token}'
            self.session = aiohttp.ClientSession(
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self.session

    @staticmethod
    def _decode(text: str) -> Any:
        if not text.strip():
            return {}
        return json.loads(text)

    async def _request(self, method: str, endpoint: str, **kwargs) -> Any:
        """
        统一的请求方法，封装了请求的发送、错误归一化和响应解析。

        :param method: HTTP 请求方法 (e.g., "GET", "PATCH").
        :param endpoint: 资源路径 (e.g., "/notes").
        :param kwargs: 传递给 aiohttp.ClientSession.request 的其他参数。
        :return: 解析后的 JSON 响应。
        :raises NotesTransportError: 没有收到响应（连接失败或超时）。
        :raises NotesApplicationError: 服务端返回了错误状态码。
        :raises NotesUnexpectedError: 响应不是合法的 JSON。
        """
        session = await self._get_session()
        url = f"{self.base_url}{endpoint}"
        logger.debug(f"{method} {url}")

        try:
            async with session.request(method, url, **kwargs) as response:
                text = await response.text()
                if response.status >= 400:
                    try:
                        body = self._decode(text)
                    except ValueError:
                        body = text
                    message = error_message_from_body(body)
                    logger.error(f"{method} {url} failed: {response.status} - {message}")
                    raise NotesApplicationError(message, status_code=response.status, payload=body)
                try:
                    return self._decode(text)
                except ValueError as e:
                    logger.error(f"{method} {url} returned invalid JSON")
                    raise NotesUnexpectedError(f"Invalid JSON response: {e}", status_code=response.status, payload=text)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Network error on {method} {url}: {e!r}")
            raise NotesTransportError(payload=e) from e

    @staticmethod
    def _parse(model: Type[ModelT], data: Any, op: str) -> ModelT:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error(f"{op} response validation failed: {e.error_count()} error(s)")
            raise NotesUnexpectedError(f"{op} response validation failed", payload=data)

    @staticmethod
    def _note_path(note_id: str) -> str:
        return f"/notes/{quote(str(note_id), safe='')}"

    async def list_notes(self, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> PageResult:
        """获取一页笔记，并检查服务端是否遵守了分页大小"""
        data = await self._request("GET", "/notes", params={"page": page, "limit": limit})
        parsed = self._parse(NotesListResponse, data, "notes.list")
        if len(parsed.notes) > limit:
            logger.error(f"Server returned {len(parsed.notes)} notes for limit={limit}")
            raise PageSizeMismatchError(
                f"Server returned {len(parsed.notes)} notes for a page size of {limit}",
                status_code=200,
                payload=data,
            )
        return PageResult(notes=tuple(parsed.notes), total_count=parsed.count)

    async def get_note(self, note_id: str) -> Note:
        data = await self._request("GET", self._note_path(note_id))
        return self._parse(NoteResponse, data, "notes.get").data.note

    async def create_note(self, payload: Dict[str, Any]) -> Note:
        data = await self._request("POST", "/notes", json=payload)
        return self._parse(NoteResponse, data, "notes.create").data.note

    async def update_note(self, note_id: str, payload: Dict[str, Any]) -> Note:
        data = await self._request("PATCH", self._note_path(note_id), json=payload)
        return self._parse(NoteResponse, data, "notes.update").data.note

    async def delete_note(self, note_id: str) -> str:
        data = await self._request("DELETE", self._note_path(note_id))
        if not data:
            return ""
        return self._parse(GenericResponse, data, "notes.delete").message or ""

    async def close(self):
        """关闭连接"""
        if self.session and not self.session.closed:
            await self.session.close()
