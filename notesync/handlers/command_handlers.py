"""
Command Handlers - 命令处理器
本模块采用命令模式（Command Pattern）和工厂模式（Factory Pattern）。
- ICommandHandler: 定义了所有命令处理器的统一接口（命令接口）。
- 每个具体命令处理器封装了执行特定命令（如 #list, #new）所需的逻辑，
  它们只调用同步层（分页控制器、变更编排器、缓存），从不直接访问传输层以外的状态。
- CommandFactory（在 command_factory.py 中）负责根据命令名称返回相应的处理器实例。
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from ..core.exceptions import NotesApiError
from ..core.log import logger
from ..core.models import EditorMode, MutationStatus

_TRUE_WORDS = {"yes", "y", "true", "1", "published", "on"}
_FALSE_WORDS = {"no", "n", "false", "0", "draft", "off"}


def parse_published(raw: str) -> Any:
    """把 yes/no 之类的输入转换为布尔值，无法识别时原样返回交给表单校验"""
    word = raw.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    return raw.strip()


def split_form(text: str) -> List[str]:
    """按 | 切分 "标题 | 内容 | 发布" 形式的输入"""
    return [part.strip() for part in text.split("|")]


class ICommandHandler(ABC):
    """
    命令处理器接口（Command Interface）
    定义了所有具体命令处理器必须实现的 `handle` 方法。
    """

    def __init__(self, app):
        self.app = app

    @abstractmethod
    async def handle(self, args: List[str]) -> Optional[str]:
        """
        处理命令的抽象方法。

        :param args: 解析后的命令参数列表。
        :return: 要显示给用户的文本，None 表示不输出。
        """
        pass


class ListCommandHandler(ICommandHandler):
    """'#list' / '#notes' 命令：显示当前页"""

    async def handle(self, args: List[str]) -> Optional[str]:
        await self.app.pagination.refresh()
        return await self.app.render_page()


class NextCommandHandler(ICommandHandler):
    """'#next' 命令"""

    async def handle(self, args: List[str]) -> Optional[str]:
        await self.app.pagination.next()
        return await self.app.render_page()


class PreviousCommandHandler(ICommandHandler):
    """'#prev' 命令"""

    async def handle(self, args: List[str]) -> Optional[str]:
        await self.app.pagination.previous()
        return await self.app.render_page()


class PageCommandHandler(ICommandHandler):
    """'#page N' 命令"""

    async def handle(self, args: List[str]) -> Optional[str]:
        if not args or not args[0].isdigit():
            return "Please give a page number. Usage: #page 2"
        await self.app.pagination.go_to(int(args[0]))
        return await self.app.render_page()


class RefreshCommandHandler(ICommandHandler):
    """'#refresh' 命令：整体失效后重新拉取当前页"""

    async def handle(self, args: List[str]) -> Optional[str]:
        self.app.cache.invalidate()
        await self.app.pagination.refresh()
        return await self.app.render_page()


class ShowCommandHandler(ICommandHandler):
    """'#show ID' 命令：显示单条笔记"""

    async def handle(self, args: List[str]) -> Optional[str]:
        if not args:
            return "Please give a note id. Usage: #show ID"
        note_id = self.app.resolve_note_id(args[0])
        try:
            note = await self.app.api_client.get_note(note_id)
        except NotesApiError as e:
            logger.warning(f"Show command error: {e.message}")
            await self.app.notifier.error(self.app.response_manager.error_general(e.message))
            return None
        return await self.app.template_renderer.render('note_detail', {'note': note})


class NewCommandHandler(ICommandHandler):
    """'#new 标题 | 内容 [| yes]' 命令：创建笔记"""

    async def handle(self, args: List[str]) -> Optional[str]:
        parts = split_form(" ".join(args))
        draft: Dict[str, Any] = {
            "title": parts[0] if parts else "",
            "content": parts[1] if len(parts) > 1 else "",
        }
        if len(parts) > 2 and parts[2]:
            draft["is_published"] = parse_published(parts[2])

        editor = self.app.open_editor(EditorMode.CREATE, draft=draft)
        result = await self.app.mutations.create(draft, editor=editor)
        return await self.app.after_mutation(result, editor)


class EditCommandHandler(ICommandHandler):
    """'#edit ID 标题 | 内容 [| yes/no]' 命令：更新笔记，空白部分沿用当前值"""

    async def handle(self, args: List[str]) -> Optional[str]:
        if len(args) < 2:
            return "Usage: #edit ID Title | Content [| yes/no]"
        note_id = self.app.resolve_note_id(args[0])
        current = await self.app.load_note(note_id)
        if current is None:
            return None

        parts = split_form(" ".join(args[1:]))
        draft: Dict[str, Any] = {
            "title": current.title,
            "content": current.content,
            "is_published": current.is_published,
        }
        for key, value in zip(("title", "content"), parts[:2]):
            if value:
                draft[key] = value
        if len(parts) > 2 and parts[2]:
            draft["is_published"] = parse_published(parts[2])

        editor = self.app.open_editor(EditorMode.UPDATE, note_id=note_id, draft=draft)
        result = await self.app.mutations.update(note_id, draft, editor=editor)
        return await self.app.after_mutation(result, editor)


class DeleteCommandHandler(ICommandHandler):
    """'#del' 或 '#rm' 命令：删除笔记"""

    async def handle(self, args: List[str]) -> Optional[str]:
        if not args:
            return "Please give a note id. Usage: #del ID"
        note_id = self.app.resolve_note_id(args[0])
        result = await self.app.mutations.delete(note_id)
        if result.status is MutationStatus.SUCCESS:
            await self.app.pagination.refresh()
            return await self.app.render_page()
        if result.status is MutationStatus.IGNORED:
            return "This note is already being deleted."
        if result.status is MutationStatus.INVALID:
            return "; ".join(msg for msgs in result.field_errors.values() for msg in msgs)
        return None


class HelpCommandHandler(ICommandHandler):
    """'#help' 命令"""

    async def handle(self, args: List[str]) -> Optional[str]:
        return await self.app.template_renderer.render('help', {})


def parse_command(message_text: str) -> Optional[Tuple[str, List[str]]]:
    """把 "#cmd a b" 解析为 ("cmd", ["a", "b"])，不是命令时返回 None"""
    text = message_text.strip()
    if not text.startswith('#'):
        return None
    parts = text[1:].split()
    if not parts:
        return None
    return parts[0].lower(), parts[1:]
