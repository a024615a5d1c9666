"""
Mutation Orchestrator - 变更编排器
为创建、更新、删除提供统一的生命周期：
    持有进行中指示 -> 本地校验 -> 传输层调用 -> 释放指示
    -> 成功: 关闭编辑界面、整体失效列表缓存、成功提示
    -> 失败: 关闭编辑界面、一次错误提示，不自动重试
校验失败时不发请求、不失效缓存、不弹全局提示，字段错误留在表单上。
每次提交都返回一个 MutationResult，而不是分散的回调。
"""

from typing import Any, Awaitable, Callable, Dict, Optional

from ..core.exceptions import NotesApiError, ValidationFailed, normalize_error
from ..core.log import logger
from ..core.models import NOTES_NAMESPACE, EditorSession, MutationResult, MutationStatus
from ..core.schemas import Note
from ..services.notes_api import INoteRepository
from ..services.validators import validate_create, validate_note_id, validate_update
from ..utils.notifier import Notifier, ProgressIndicator
from ..utils.response_manager import ResponseManager
from .query_cache import QueryCache


class MutationOrchestrator:
    """
    变更编排器
    同一逻辑操作（如同一条笔记的更新）进行中时，重复提交会被忽略；
    不同操作之间可以并发。
    """

    def __init__(
        self,
        repository: INoteRepository,
        cache: QueryCache,
        notifier: Notifier,
        progress: ProgressIndicator,
        response_manager: ResponseManager,
        namespace: str = NOTES_NAMESPACE,
    ):
        self.repository = repository
        self.cache = cache
        self.notifier = notifier
        self.progress = progress
        self.response_manager = response_manager
        self.namespace = namespace

    async def create(self, form: Any, editor: Optional[EditorSession] = None) -> MutationResult:
        """提交创建表单"""
        return await self._submit(
            "create",
            lambda: validate_create(form),
            self.repository.create_note,
            lambda note: self.response_manager.note_created(note.title),
            editor,
        )

    async def update(self, note_id: str, form: Any, editor: Optional[EditorSession] = None) -> MutationResult:
        """提交更新表单（部分更新）"""

        def validate() -> Dict[str, Any]:
            valid_id = validate_note_id(note_id)
            return {"id": valid_id, "payload": validate_update(form)}

        return await self._submit(
            f"update:{note_id}",
            validate,
            lambda args: self.repository.update_note(args["id"], args["payload"]),
            lambda note: self.response_manager.note_updated(note.title),
            editor,
        )

    async def delete(self, note_id: str) -> MutationResult:
        """删除笔记"""
        return await self._submit(
            f"delete:{note_id}",
            lambda: validate_note_id(note_id),
            self.repository.delete_note,
            lambda _message: self.response_manager.note_deleted(note_id),
            None,
        )

    def is_pending(self, operation: str) -> bool:
        """某个逻辑操作（create / update:<id> / delete:<id>）是否正在进行"""
        return self.progress.is_active(operation)

    async def _submit(
        self,
        operation: str,
        validate: Callable[[], Any],
        perform: Callable[[Any], Awaitable[Any]],
        success_message: Callable[[Any], Optional[str]],
        editor: Optional[EditorSession],
    ) -> MutationResult:
        if self.progress.is_active(operation):
            logger.info(f"Ignoring duplicate submit for '{operation}'")
            return MutationResult(status=MutationStatus.IGNORED)

        value: Any = None
        error: Optional[NotesApiError] = None
        invalid: Optional[ValidationFailed] = None

        with self.progress.track(operation):
            try:
                payload = validate()
            except ValidationFailed as e:
                invalid = e
            else:
                try:
                    value = await perform(payload)
                except Exception as e:
                    error = normalize_error(e)

        if invalid is not None:
            logger.debug(f"'{operation}' rejected by validation: {invalid}")
            if editor is not None:
                editor.field_errors = invalid.field_errors
            return MutationResult(status=MutationStatus.INVALID, field_errors=invalid.field_errors)

        if editor is not None:
            editor.close()

        if error is not None:
            logger.warning(f"'{operation}' failed: {error.message}")
            message = self.response_manager.error_general(error.message)
            await self.notifier.error(message)
            return MutationResult(status=MutationStatus.FAILED, message=message, error=error)

        self.cache.invalidate(self.namespace)
        message = success_message(value)
        if message:
            await self.notifier.success(message)
        logger.info(f"'{operation}' succeeded")
        return MutationResult(
            status=MutationStatus.SUCCESS,
            note=value if isinstance(value, Note) else None,
            message=message,
        )
