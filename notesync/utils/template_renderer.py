"""
Template rendering utilities
模板渲染工具，使用 Jinja2 把列表、表单和单条笔记渲染为终端文本。
列表模板覆盖 加载中 / 错误 / 空列表 / 正常 四种状态以及分页栏，
所有状态标志都由调用方从缓存视图当场推导后传入。
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from jinja2 import DictLoader, Environment

_NOTE_LIST_TEMPLATE = """\
📝 Notes{% if busy %} ⏳{% endif %}
{% if view.is_loading %}
Loading notes...
{% elif view.is_error and not view.notes %}
Failed to load notes: {{ view.error.message }}
{% elif not view.notes %}
No notes available
{% else %}
{% if view.is_error %}
⚠️ Showing saved results: {{ view.error.message }}
{% endif %}
{% for note in view.notes %}
[{{ loop.index }}] {{ "🌐" if note.is_published else "🔒" }} {{ note.title }}{% if not compact_mode %} ({{ note.id }}){% endif %}

{% if compact_mode %}
    {{ note.content[:40] }}{{ "..." if note.content|length > 40 else "" }}
{% else %}
    {{ note.content[:120] }}{{ "..." if note.content|length > 120 else "" }}
{% if show_timestamps and note.updated_at %}
    updated {{ note.updated_at.strftime("%Y-%m-%d %H:%M") }}
{% endif %}
{% endif %}
{% endfor %}
{% endif %}
{% if not view.is_loading %}
{{ "[< Previous]" if can_previous else "[  -------  ]" }}  Page {{ page }} of {{ total_pages }}  {{ "[Next >]" if can_next else "[ ---- ]" }}
{% endif %}
"""

_NOTE_FORM_TEMPLATE = """\
✏️ {{ "Create Note" if mode == "create" else "Update Note" }}
{% for field in ["title", "content", "is_published"] %}
{{ labels[field] }}: {{ draft.get(field, "") if draft.get(field) is not none else "" }}
{% for message in field_errors.get(field, []) %}
    ❗ {{ message }}
{% endfor %}
{% endfor %}
{% for message in field_errors.get("_form", []) + field_errors.get("id", []) %}
❗ {{ message }}
{% endfor %}
"""

_NOTE_DETAIL_TEMPLATE = """\
📄 {{ note.title }} {{ "(published)" if note.is_published else "(draft)" }}
id: {{ note.id }}
{% if note.created_at %}created: {{ note.created_at.strftime("%Y-%m-%d %H:%M") }}
{% endif %}
{% if note.updated_at %}updated: {{ note.updated_at.strftime("%Y-%m-%d %H:%M") }}
{% endif %}

{{ note.content }}
"""

_HELP_TEMPLATE = """\
📖 Notes help

Browse:
- #list / #notes - show the current page
- #next / #prev - next or previous page
- #page N - jump to page N
- #refresh - reload every page
- #show ID - show one note

Edit:
- #new Title | Content [| yes] - create a note (yes = published)
- #edit ID Title | Content [| yes/no] - update a note, empty parts keep the current value
- #del ID - delete a note

ID may be the [number] shown in the current page or the note id.
"""


class ITemplateRenderer(ABC):
    """模板渲染器接口"""

    @abstractmethod
    async def render(self, template_name: str, data: Dict[str, Any]) -> str:
        """渲染模板"""
        pass


class Jinja2TemplateRenderer(ITemplateRenderer):
    """Jinja2 模板渲染器实现"""

    FORM_LABELS = {
        "title": "Title",
        "content": "Content",
        "is_published": "Published",
    }

    def __init__(self, config: Dict[str, Any] = None):
        self.config = config or {}
        self.templates = {
            'note_list': _NOTE_LIST_TEMPLATE,
            'note_form': _NOTE_FORM_TEMPLATE,
            'note_detail': _NOTE_DETAIL_TEMPLATE,
            'help': _HELP_TEMPLATE,
        }
        self._load_custom_templates()
        self.env = Environment(
            loader=DictLoader(self.templates),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=False,
        )

    def _load_custom_templates(self):
        """加载自定义模板"""
        custom_config = self.config.get("ui_preferences", {}).get("custom_templates", {})
        if custom_config.get("enable_custom", False):
            for name in ('note_list', 'note_form', 'note_detail'):
                template = custom_config.get(f"{name}_template")
                if template:
                    self.templates[name] = template

    def _defaults(self) -> Dict[str, Any]:
        ui = self.config.get("ui_preferences", {})
        return {
            'compact_mode': ui.get("compact_mode", False),
            'show_timestamps': ui.get("show_timestamps", True),
            'labels': self.FORM_LABELS,
        }

    async def render(self, template_name: str, data: Dict[str, Any]) -> str:
        """渲染模板"""
        template = self.env.get_template(template_name)
        context = {**self._defaults(), **data}
        return template.render(**context).rstrip()
