"""
Notes App - 应用入口
本文件作为应用的组合根（Composition Root），核心职责是：
1. 初始化并装配所有核心组件（传输层、缓存同步器、分页控制器、变更编排器、渲染器等）。
2. 把文本命令分发到相应的命令处理器。
3. 持有当前的编辑界面（表单会话），并把拉取失败转为全局提示。
4. 管理生命周期：启动时加载第一页，终止时释放缓存和连接。
"""

from typing import Any, Dict, Optional

from .core.exceptions import NotesApiError
from .core.log import logger
from .core.models import EditorMode, EditorSession, MutationResult, MutationStatus, PageQuery
from .core.schemas import Note
from .handlers.command_factory import CommandFactory
from .handlers.command_handlers import parse_command
from .services.notes_api import INoteRepository, NotesApiClient
from .sync.mutations import MutationOrchestrator
from .sync.pagination import PaginationController
from .sync.query_cache import ICacheObserver, QueryCache
from .utils.notifier import LoggingNotificationObserver, Notifier, ProgressIndicator
from .utils.response_manager import ResponseManager
from .utils.template_renderer import Jinja2TemplateRenderer


class NotesApp(ICacheObserver):
    """
    笔记应用主类
    作为协调中心，采用依赖注入的方式将各个模块组合在一起。
    - 使用仓储模式（INoteRepository）访问笔记服务，测试时可替换为内存实现。
    - 使用观察者模式（QueryCache / Notifier）传播拉取结果和全局提示。
    - 使用工厂模式（CommandFactory）创建命令处理器。
    """

    def __init__(self, config: Dict[str, Any], repository: Optional[INoteRepository] = None):
        self.config = config
        self.editor: Optional[EditorSession] = None
        self._init_components(repository)

    def _init_components(self, repository: Optional[INoteRepository]):
        """初始化并装配所有核心组件。"""
        # API 客户端（仓储模式）
        self.api_client = repository or NotesApiClient(
            base_url=self.config.get("notes_base_url", "http://localhost:8080/api/v1"),
            token=self.config.get("notes_token") or None,
            timeout=self.config.get("request_timeout", 30.0),
        )

        # 全局提示与进度指示
        self.notifier = Notifier()
        self.notifier.add_observer(LoggingNotificationObserver())
        self.progress = ProgressIndicator()
        self.response_manager = ResponseManager(self.config)

        # 缓存同步器（唯一的共享状态）
        self.cache = QueryCache(
            self.api_client,
            stale_time=self.config.get("stale_time", 5.0),
            placeholder_previous=self.config.get("placeholder_previous", True),
        )
        self.cache.add_observer(self)

        self.pagination = PaginationController(self.cache, page_size=self.config.get("page_size", 10))
        self.mutations = MutationOrchestrator(
            self.api_client,
            self.cache,
            self.notifier,
            self.progress,
            self.response_manager,
        )

        self.template_renderer = Jinja2TemplateRenderer(self.config)
        self.command_factory = CommandFactory(self)

    async def on_fetch_failed(self, query: PageQuery, error: NotesApiError):
        """每次拉取失败恰好产生一条全局提示"""
        await self.notifier.error(self.response_manager.error_general(error.message))

    # ------------------------------ editor -----------------------------------

    def open_editor(self, mode: EditorMode, note_id: Optional[str] = None,
                    draft: Optional[Dict[str, Any]] = None) -> EditorSession:
        """打开编辑界面，已有的编辑界面会先被关闭（草稿丢弃）"""
        self.close_editor()
        self.editor = EditorSession(mode=mode, note_id=note_id, draft=dict(draft or {}))
        return self.editor

    def close_editor(self):
        if self.editor is not None:
            self.editor.close()
            self.editor = None

    # ------------------------------ helpers ----------------------------------

    @property
    def is_busy(self) -> bool:
        """进度条：有变更在进行，或当前页正在加载"""
        return self.progress.active or self.pagination.view().is_fetching

    def resolve_note_id(self, token: str) -> str:
        """当前页的显示编号 [n] 转换为笔记ID，其他输入按ID原样返回"""
        if token.isdigit():
            notes = self.pagination.view().notes
            index = int(token)
            if 1 <= index <= len(notes):
                return notes[index - 1].id
        return token

    async def load_note(self, note_id: str) -> Optional[Note]:
        """优先从缓存的页面中查找笔记，找不到再向服务端获取"""
        note = self.cache.find_note(note_id)
        if note is not None:
            return note
        try:
            return await self.api_client.get_note(note_id)
        except NotesApiError as e:
            logger.warning(f"Failed to load note {note_id}: {e.message}")
            await self.notifier.error(self.response_manager.error_general(e.message))
            return None

    async def render_page(self) -> str:
        pagination = self.pagination
        return await self.template_renderer.render('note_list', {
            'view': pagination.view(),
            'page': pagination.page,
            'total_pages': pagination.total_pages,
            'can_previous': pagination.can_previous,
            'can_next': pagination.can_next,
            'busy': self.is_busy,
        })

    async def render_editor(self, editor: EditorSession) -> str:
        return await self.template_renderer.render('note_form', {
            'mode': editor.mode.value,
            'draft': editor.draft,
            'field_errors': editor.field_errors,
        })

    async def after_mutation(self, result: MutationResult, editor: EditorSession) -> Optional[str]:
        """根据变更结果决定显示内容"""
        if not editor.is_open and self.editor is editor:
            self.editor = None
        if result.status is MutationStatus.INVALID:
            return await self.render_editor(editor)
        if result.status is MutationStatus.IGNORED:
            return "Still saving the previous submission, please wait."
        if result.status is MutationStatus.SUCCESS:
            await self.pagination.refresh()
            return await self.render_page()
        return None

    # ----------------------------- lifecycle ---------------------------------

    async def handle_message(self, message_text: str) -> Optional[str]:
        """
        统一的消息处理方法
        """
        parsed = parse_command(message_text)
        if parsed is None:
            return "Commands start with #. Try #help"

        command, args = parsed
        handler = self.command_factory.get_handler(command)
        if handler is None:
            return self.response_manager.command_unknown(command)
        try:
            return await handler.handle(args)
        except Exception as e:
            logger.error(f"Command handler error: {e}")
            await self.notifier.error(self.response_manager.error_general(str(e) or e.__class__.__name__))
            return None

    async def start(self) -> str:
        """加载第一页"""
        await self.pagination.refresh()
        return await self.render_page()

    async def terminate(self):
        """
        终止时的清理工作
        丢弃缓存、关闭编辑界面和 API 连接。
        """
        try:
            self.close_editor()
            self.cache.clear()
            await self.api_client.close()
            logger.info("Notes app terminated successfully")
        except Exception as e:
            logger.error(f"Error during termination: {e}")
