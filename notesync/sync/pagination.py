"""
Pagination Controller - 分页控制器
根据服务端报告的总数和固定分页大小推导总页数，并把导航限制在 [1, 总页数] 内。
当前页有请求在进行时导航被锁定，避免用过期的总页数翻过真正的最后一页。
列表缩短（例如删除了最后一页的最后一条）导致当前页超出总页数时，自动回退并重新拉取。
"""

import math
from typing import Optional

from ..core.exceptions import NotesApiError
from ..core.log import logger
from ..core.models import DEFAULT_PAGE_SIZE, PageQuery, PageView
from .query_cache import ICacheObserver, QueryCache


def total_pages(count: int, page_size: int = DEFAULT_PAGE_SIZE) -> int:
    """总页数，至少为 1"""
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    return max(1, math.ceil(max(count, 0) / page_size))


class PaginationController(ICacheObserver):
    """
    分页控制器
    作为缓存观察者，在当前页结果落地后检查是否需要回退页码。
    """

    def __init__(self, cache: QueryCache, page_size: int = DEFAULT_PAGE_SIZE):
        self.cache = cache
        self.page_size = page_size
        self.page = 1
        self._previous: Optional[PageQuery] = None
        self._last_count: Optional[int] = None
        self.cache.add_observer(self)
        self.cache.mount(self.query)

    @property
    def query(self) -> PageQuery:
        return PageQuery(page=self.page, page_size=self.page_size)

    def view(self) -> PageView:
        return self.cache.view(self.query, previous=self._previous)

    @property
    def total_count(self) -> Optional[int]:
        """当前页的权威总数；占位数据不计入，此时沿用上一次已知的总数"""
        count = self.view().total_count
        return count if count is not None else self._last_count

    @property
    def total_pages(self) -> int:
        return total_pages(self.total_count or 0, self.page_size)

    @property
    def is_locked(self) -> bool:
        return self.cache.is_fetching(self.query)

    @property
    def can_previous(self) -> bool:
        return not self.is_locked and self.page > 1

    @property
    def can_next(self) -> bool:
        return not self.is_locked and self.page < self.total_pages

    async def go_to(self, page: int) -> bool:
        """
        跳转到指定页，页码会被限制在 [1, 总页数] 内。

        :return: 是否真的发生了跳转。
        """
        if self.is_locked:
            logger.debug(f"Navigation to page {page} ignored: page {self.page} is loading")
            return False
        target = min(max(1, page), self.total_pages)
        if target == self.page:
            return False
        self._switch(target)
        await self.refresh()
        return True

    async def next(self) -> bool:
        if not self.can_next:
            return False
        return await self.go_to(self.page + 1)

    async def previous(self) -> bool:
        if not self.can_previous:
            return False
        return await self.go_to(self.page - 1)

    async def refresh(self) -> PageView:
        """
        拉取当前页；失败已由缓存通知，这里只返回视图。
        缓存在等待期间被 clear()（应用终止）时同样返回当前视图。
        """
        try:
            await self.cache.fetch(self.query)
        except NotesApiError as e:
            logger.debug(f"Page {self.page} unavailable: {e.message}")
        return self.view()

    def _switch(self, page: int):
        current = self.query
        self.cache.unmount(current)
        self._previous = current
        self.page = page
        self.cache.mount(self.query)

    async def on_page_settled(self, query: PageQuery, view: PageView):
        # 已再次失效的结果马上会被重新拉取的结果取代
        if query != self.query or view.total_count is None or view.is_stale:
            return
        self._last_count = view.total_count
        last_page = total_pages(view.total_count, self.page_size)
        if self.page > last_page:
            logger.info(f"Page {self.page} no longer exists, moving to page {last_page}")
            self._switch(last_page)
            await self.refresh()
