from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional, Type, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} không hợp lệ")
    return value.strip()


def optional_text(value: Optional[str], field_name: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} không hợp lệ")
    return value.strip()


def require_enum(enum_cls: Type[E], value: object, field_name: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} không hợp lệ: {value!r}") from None


def require_str_list(value: object, field_name: str) -> Optional[list[str]]:
    """JSON array of strings, or None when the key was sent as null."""
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f"{field_name} phải là danh sách chuỗi")
    return value


def clean_ids(values: Optional[Iterable[object]]) -> tuple[str, ...]:
    """Normalize a list of identifiers: strip, drop blanks, keep first occurrence order."""
    if isinstance(values, (str, bytes)):
        raise ValidationError("Danh sách id không hợp lệ")
    out: list[str] = []
    for v in values or ():
        s = str(v).strip()
        if s and s not in out:
            out.append(s)
    return tuple(out)
