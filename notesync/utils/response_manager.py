"""
Response Manager - 提示文案
成功与失败提示的文案都可以在 ui_preferences.custom_responses 中覆盖。
"""

from typing import Any, Dict, Optional

from ..core.config import DEFAULT_CONFIG
from ..core.log import logger

_DEFAULT_RESPONSES: Dict[str, str] = DEFAULT_CONFIG["ui_preferences"]["custom_responses"]


class ResponseManager:
    """提示文案管理，自定义文案覆盖默认文案"""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        custom = self.config.get("ui_preferences", {}).get("custom_responses", {})
        self._response_config = {**_DEFAULT_RESPONSES, **custom}

    def get_response(self, response_type: str, **kwargs) -> Optional[str]:
        """
        按类型取出提示文案并填充 {占位符}。
        文案配置为空字符串表示关闭该提示，此时返回 None；
        占位符与参数对不上时原样返回文案。
        """
        template = self._response_config.get(response_type) or ""
        if not template.strip():
            return None
        try:
            return template.format(**kwargs)
        except (KeyError, IndexError, ValueError):
            logger.debug(f"Response '{response_type}' has unmatched placeholders")
            return template

    def note_created(self, title: str = "") -> Optional[str]:
        return self.get_response("note_created", title=title)

    def note_updated(self, title: str = "") -> Optional[str]:
        return self.get_response("note_updated", title=title)

    def note_deleted(self, note_id: str = "") -> Optional[str]:
        return self.get_response("note_deleted", id=note_id)

    def error_general(self, error: str) -> str:
        """失败提示永远不会被关闭：配置为空时退回原始错误信息"""
        return self.get_response("error_general", error=error) or error

    def command_unknown(self, command: str) -> Optional[str]:
        return self.get_response("command_unknown", command=command)

    def should_respond(self, response_type: str) -> bool:
        """检查是否应该响应（配置不为空）"""
        template = self._response_config.get(response_type)
        return bool(template and template.strip())
