"""
Form Validators - 表单校验
使用 core.schemas 中声明的 pydantic 模式校验创建/更新表单。
校验失败时抛出 ValidationFailed，携带按字段归类的错误信息，请求不会到达传输层。
"""

from typing import Any, Dict, List

from pydantic import ValidationError

from ..core.exceptions import ValidationFailed
from ..core.schemas import CreateNoteInput, UpdateNoteInput

FORM_ERROR_KEY = "_form"

_REQUIRED_MESSAGES = {
    "title": "Title is required",
    "content": "Content is required",
}

_TYPE_MESSAGES = {
    "bool_type": "Must be true or false",
    "string_type": "Must be text",
    "extra_forbidden": "Unknown field",
    "model_type": "Expected a form object",
}


def field_errors_from(exc: ValidationError) -> Dict[str, List[str]]:
    """把 pydantic 的错误列表转换为 {字段: [提示, ...]}"""
    out: Dict[str, List[str]] = {}
    for err in exc.errors():
        loc = err.get("loc") or ()
        name = str(loc[0]) if loc else FORM_ERROR_KEY
        err_type = err.get("type", "")
        if err_type in ("missing", "string_too_short") and name in _REQUIRED_MESSAGES:
            message = _REQUIRED_MESSAGES[name]
        else:
            message = _TYPE_MESSAGES.get(err_type, err.get("msg", "Invalid value"))
        messages = out.setdefault(name, [])
        if message not in messages:
            messages.append(message)
    return out


def validate_create(data: Any) -> Dict[str, Any]:
    """
    校验创建表单。

    :param data: 表单原始数据。
    :return: 可直接发送给服务端的请求体，is_published 缺省为 False。
    :raises ValidationFailed: 校验不通过时抛出。
    """
    try:
        form = CreateNoteInput.model_validate(data)
    except ValidationError as e:
        raise ValidationFailed(field_errors_from(e))
    payload = form.model_dump()
    if payload.get("is_published") is None:
        payload["is_published"] = False
    return payload


def validate_update(data: Any) -> Dict[str, Any]:
    """
    校验更新表单，只返回实际提供的字段（部分更新）。

    :raises ValidationFailed: 校验不通过或没有任何可更新字段时抛出。
    """
    try:
        form = UpdateNoteInput.model_validate(data)
    except ValidationError as e:
        raise ValidationFailed(field_errors_from(e))
    payload = form.model_dump(exclude_none=True)
    if not payload:
        raise ValidationFailed({FORM_ERROR_KEY: ["Nothing to update"]})
    return payload


def validate_note_id(note_id: Any) -> str:
    """笔记ID是服务端分配的不透明字符串，只要求非空"""
    if not isinstance(note_id, str) or not note_id.strip():
        raise ValidationFailed({"id": ["Note id is required"]})
    return note_id.strip()
