"""
Query Cache / Synchronizer - 查询缓存与同步器
本模块持有笔记列表每一页的拉取结果（PageQuery -> CacheEntry），是客户端唯一的共享状态。
- 命中且未失效的页面立即返回，超过新鲜期时在后台重新验证。
- 同一页同时最多一个请求，后来的调用方订阅同一个结果（请求合并）。
- 失败时保留上一次成功的结果（serve-stale-on-error），并记录错误。
- invalidate() 让整个命名空间失效：正在渲染的页面立即重新拉取，其余页面在下次访问时再拉取。
其他组件只能通过这里的方法读取或触发修改，缓存条目本身从不对外暴露。

所有方法都必须在事件循环中调用（单线程、非阻塞）。
"""

import asyncio
import time
from abc import ABC
from typing import Callable, Dict, List, Optional, Tuple

from ..core.exceptions import NotesApiError, NotesRequestCancelled, normalize_error
from ..core.log import logger
from ..core.models import (
    DEFAULT_PAGE_SIZE,
    NOTES_NAMESPACE,
    CacheEntry,
    PageQuery,
    PageResult,
    PageView,
)
from ..core.schemas import Note
from ..services.notes_api import INoteRepository

FetchOutcome = Tuple[Optional[PageResult], Optional[NotesApiError]]


class ICacheObserver(ABC):
    """
    缓存观察者接口
    每个请求结束后，QueryCache 会恰好调用一次其中一个回调。
    """

    async def on_page_settled(self, query: PageQuery, view: PageView):
        """某页拉取成功并已写入缓存"""
        pass

    async def on_fetch_failed(self, query: PageQuery, error: NotesApiError):
        """某页拉取失败；同一次失败无论有多少调用方在等待都只通知一次"""
        pass


class QueryCache:
    """
    分页查询缓存（同步器）
    """

    def __init__(
        self,
        repository: INoteRepository,
        stale_time: float = 5.0,
        placeholder_previous: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        :param repository: 笔记仓储（传输层）。
        :param stale_time: 新鲜期（秒），超过后命中缓存会触发后台重新验证。
        :param placeholder_previous: 新页面首次加载时是否用上一页的结果占位。
        :param clock: 单调时钟，测试中可替换。
        """
        self.repository = repository
        self.stale_time = stale_time
        self.placeholder_previous = placeholder_previous
        self._clock = clock
        self._entries: Dict[PageQuery, CacheEntry] = {}
        self._mounted: Dict[PageQuery, int] = {}
        self._seq = 0
        self.observers: List[ICacheObserver] = []

    # ------------------------------ observers --------------------------------

    def add_observer(self, observer: ICacheObserver):
        if observer not in self.observers:
            self.observers.append(observer)

    def remove_observer(self, observer: ICacheObserver):
        if observer in self.observers:
            self.observers.remove(observer)

    async def _notify_settled(self, query: PageQuery, view: PageView):
        for observer in list(self.observers):
            try:
                await observer.on_page_settled(query, view)
            except Exception as e:
                logger.error(f"缓存观察者处理 settled 事件时出错: {e}")

    async def _notify_failed(self, query: PageQuery, error: NotesApiError):
        for observer in list(self.observers):
            try:
                await observer.on_fetch_failed(query, error)
            except Exception as e:
                logger.error(f"缓存观察者处理 failed 事件时出错: {e}")

    # ------------------------------ rendering --------------------------------

    def mount(self, query: PageQuery):
        """登记一个正在渲染该页的视图"""
        self._mounted[query] = self._mounted.get(query, 0) + 1

    def unmount(self, query: PageQuery):
        count = self._mounted.get(query, 0) - 1
        if count > 0:
            self._mounted[query] = count
        else:
            self._mounted.pop(query, None)

    def is_mounted(self, query: PageQuery) -> bool:
        return query in self._mounted

    # ------------------------------- reading ---------------------------------

    def peek(self, query: PageQuery) -> Optional[PageResult]:
        """返回最近一次成功的结果，不触发任何请求"""
        entry = self._entries.get(query)
        return entry.result if entry else None

    def is_fetching(self, query: PageQuery) -> bool:
        entry = self._entries.get(query)
        return entry is not None and entry.is_fetching

    def find_note(self, note_id: str) -> Optional[Note]:
        """在已缓存的页面中查找笔记"""
        for entry in self._entries.values():
            if entry.result is not None:
                note = entry.result.find(note_id)
                if note is not None:
                    return note
        return None

    def view(self, query: PageQuery, previous: Optional[PageQuery] = None) -> PageView:
        """
        推导某页的渲染视图。

        :param query: 当前页。
        :param previous: 之前显示的页，当前页还没有数据时用它的结果占位。
        """
        entry = self._entries.get(query)
        fetching = entry is not None and entry.is_fetching
        if entry is not None and entry.result is not None:
            return PageView(
                query=query,
                notes=entry.result.notes,
                total_count=entry.result.total_count,
                is_fetching=fetching,
                is_stale=entry.is_stale,
                error=entry.error,
            )

        placeholder: Optional[PageResult] = None
        if self.placeholder_previous and previous is not None and previous != query:
            placeholder = self.peek(previous)
        return PageView(
            query=query,
            notes=placeholder.notes if placeholder else (),
            total_count=None,
            is_placeholder=placeholder is not None,
            is_loading=fetching and placeholder is None,
            is_fetching=fetching,
            is_stale=entry.is_stale if entry else False,
            error=entry.error if entry else None,
        )

    # ------------------------------- fetching --------------------------------

    async def fetch_page(self, page: int, page_size: int = DEFAULT_PAGE_SIZE) -> PageResult:
        return await self.fetch(PageQuery(page=page, page_size=page_size))

    async def fetch(self, query: PageQuery) -> PageResult:
        """
        获取一页数据。
        等待中的请求如果在发出后遇到了失效，会继续等待随后的重新拉取，
        因此变更成功之后的 fetch 不会拿到变更之前的数据。

        :return: 该页的结果（可能直接来自缓存）。
        :raises NotesApiError: 需要等待的请求失败时抛出（错误已同时写入缓存并通知观察者）。
        :raises NotesRequestCancelled: 等待期间缓存被 clear()。
        """
        entry = self._entries.get(query)
        if entry is None:
            entry = CacheEntry(query=query)
            self._entries[query] = entry

        if entry.result is not None and not entry.is_stale:
            if entry.in_flight is None and self._is_expired(entry):
                logger.debug(f"Revalidating page {query.page} in background")
                self._start_fetch(entry)
            return entry.result

        while True:
            if entry.in_flight is None:
                self._start_fetch(entry)
            task = entry.in_flight
            try:
                result, error = await asyncio.shield(task)
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
                raise NotesRequestCancelled()
            if error is not None:
                raise error
            # 结果已被清除，或没有在等待期间再次失效
            if self._entries.get(query) is not entry or not entry.is_stale:
                return result
            logger.debug(f"Page {query.page} was invalidated while loading, waiting for the refetch")

    def _is_expired(self, entry: CacheEntry) -> bool:
        if entry.updated_at is None:
            return True
        return self._clock() - entry.updated_at >= self.stale_time

    def _start_fetch(self, entry: CacheEntry):
        self._seq += 1
        seq = self._seq
        entry.dispatched = False
        entry.refetch_on_settle = False
        entry.in_flight = asyncio.get_running_loop().create_task(self._run_fetch(entry, seq))
        logger.debug(f"Fetch #{seq} scheduled for page {entry.query.page}")

    async def _run_fetch(self, entry: CacheEntry, seq: int) -> FetchOutcome:
        query = entry.query
        entry.dispatched = True
        result: Optional[PageResult] = None
        error: Optional[NotesApiError] = None
        try:
            result = await self.repository.list_notes(query.page, query.page_size)
        except asyncio.CancelledError:
            entry.in_flight = None
            raise
        except Exception as e:
            error = normalize_error(e)
        return await self._settle(entry, seq, result, error)

    async def _settle(
        self,
        entry: CacheEntry,
        seq: int,
        result: Optional[PageResult],
        error: Optional[NotesApiError],
    ) -> FetchOutcome:
        query = entry.query
        entry.in_flight = None
        entry.dispatched = False

        # 条目已被 clear() 丢弃
        if self._entries.get(query) is not entry:
            logger.debug(f"Discarding fetch #{seq} for cleared page {query.page}")
            return result, error

        refetch = entry.refetch_on_settle
        entry.refetch_on_settle = False

        if error is None:
            entry.result = result
            entry.error = None
            entry.updated_at = self._clock()
            entry.is_stale = refetch
            logger.debug(f"Fetch #{seq} settled: page {query.page}, {len(result.notes)} of {result.total_count}")
        else:
            entry.error = error
            entry.is_stale = True
            logger.warning(f"Fetch #{seq} for page {query.page} failed: {error.message}")

        if refetch and self.is_mounted(query):
            self._start_fetch(entry)

        if error is None:
            await self._notify_settled(query, self.view(query))
        else:
            await self._notify_failed(query, error)
        return result, error

    # ----------------------------- invalidation ------------------------------

    def invalidate(self, namespace: str = NOTES_NAMESPACE) -> int:
        """
        让命名空间下的所有页面失效。
        正在渲染的页面立即重新拉取；已经发出的请求结束后会再拉取一次；
        尚未发出的请求本身就会拿到最新数据，因此连续多次失效只会产生一次请求。

        :return: 被标记为失效的页面数量。
        """
        marked = 0
        for entry in list(self._entries.values()):
            if entry.query.namespace != namespace:
                continue
            entry.is_stale = True
            marked += 1
            if entry.in_flight is not None:
                if entry.dispatched:
                    entry.refetch_on_settle = True
                continue
            if self.is_mounted(entry.query):
                self._start_fetch(entry)
        logger.debug(f"Invalidated {marked} page(s) in namespace '{namespace}'")
        return marked

    def clear(self):
        """丢弃所有缓存条目并取消仍在进行的请求"""
        for entry in self._entries.values():
            if entry.in_flight is not None:
                entry.in_flight.cancel()
        self._entries.clear()
