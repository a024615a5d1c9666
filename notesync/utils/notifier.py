"""
Notification Utilities - 通知与进度指示
本模块采用观察者模式（Observer Pattern）把同步层与展示层解耦：
- Notifier: 作为被观察者（Subject），把成功/失败提示分发给所有通知接收端（toast 等）。
- INotificationObserver: 定义了通知接收端必须实现的接口。
- ProgressIndicator: 全局的"进行中"指示（进度条），按持有者计数，支持作用域式获取/释放。
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Callable, Iterator, List, Set

from ..core.log import logger
from ..core.models import Notification, NotificationLevel


class INotificationObserver(ABC):
    """
    通知观察者接口
    任何希望收到全局提示的类都应实现此接口。
    """

    @abstractmethod
    async def on_notification(self, notification: Notification):
        """
        有新的提示时由 Notifier 调用。

        :param notification: 提示内容。
        """
        pass


class LoggingNotificationObserver(INotificationObserver):
    """把提示写入日志的接收端"""

    async def on_notification(self, notification: Notification):
        if notification.level is NotificationLevel.ERROR:
            logger.warning(f"[toast] {notification.message}")
        else:
            logger.info(f"[toast] {notification.message}")


class Notifier:
    """
    全局提示分发器（被观察者）
    观察者抛出的异常只记录日志，不会影响其他观察者和调用方。
    """

    def __init__(self):
        self.observers: List[INotificationObserver] = []

    def add_observer(self, observer: INotificationObserver):
        """添加一个观察者。"""
        if observer not in self.observers:
            self.observers.append(observer)

    def remove_observer(self, observer: INotificationObserver):
        """移除一个观察者。"""
        if observer in self.observers:
            self.observers.remove(observer)

    async def notify(self, level: NotificationLevel, message: str) -> Notification:
        notification = Notification(level=level, message=message)
        for observer in list(self.observers):
            try:
                await observer.on_notification(notification)
            except Exception as e:
                logger.error(f"通知观察者处理提示时出错: {e}")
        return notification

    async def success(self, message: str) -> Notification:
        return await self.notify(NotificationLevel.SUCCESS, message)

    async def error(self, message: str) -> Notification:
        return await self.notify(NotificationLevel.ERROR, message)


class ProgressIndicator:
    """
    全局进行中指示
    每个逻辑操作以一个 owner 键持有指示，所有持有者释放后指示才熄灭。
    同一 owner 不能重复持有，变更编排器以此拒绝重复提交。
    """

    def __init__(self):
        self._owners: Set[str] = set()
        self.listeners: List[Callable[[bool], None]] = []

    @property
    def active(self) -> bool:
        return bool(self._owners)

    def is_active(self, owner: str) -> bool:
        return owner in self._owners

    def _changed(self, was_active: bool):
        if was_active == self.active:
            return
        for listener in list(self.listeners):
            try:
                listener(self.active)
            except Exception as e:
                logger.error(f"进度监听器出错: {e}")

    def start(self, owner: str) -> bool:
        """持有指示，owner 已在持有中时返回 False。"""
        if owner in self._owners:
            return False
        was_active = self.active
        self._owners.add(owner)
        self._changed(was_active)
        return True

    def done(self, owner: str):
        was_active = self.active
        self._owners.discard(owner)
        self._changed(was_active)

    @contextmanager
    def track(self, owner: str) -> Iterator[None]:
        """在 with 块内持有指示，任何退出路径都会释放。"""
        self.start(owner)
        try:
            yield
        finally:
            self.done(owner)
