"""検証失敗をユーザー向けメッセージに変換する。"""

from typing import Any

from schemaguard.models.result import ErrorKind, ValidationFailure
from schemaguard.models.schema import DATE_FORMAT
from schemaguard.validators.primitives import to_text


def _render_datatype(field: str, kind: Any) -> str:
    if kind in ("email", "mobile"):
        return f"Invalid {field}"
    if kind == "date":
        return f"Invalid date, {field} should be in {DATE_FORMAT} format"
    return f"{field} should be {kind}"


def _render_min_max(field: str, bounds: dict[str, Any]) -> str:
    min_value = bounds.get("min")
    max_value = bounds.get("max")
    if min_value is not None and max_value is not None:
        return f"{field} should be in between {to_text(min_value)} and {to_text(max_value)}"
    if min_value is not None:
        return f"{field} should be in greater than or equal to {to_text(min_value)}"
    return f"{field} should be in less than or equal to {to_text(max_value)}"


def render(kind: ErrorKind, field: str, context: Any = None) -> str:
    """エラー種別・フィールド名・コンテキストからメッセージを生成する。

    Args:
        kind: エラー種別。
        field: フィールドパス（ドット区切り）。
        context: 種別ごとの付加情報（正規表現、上下限、許可値リスト、要素型など）。

    Returns:
        レスポンスに載せるメッセージ文字列。
    """
    if kind == ErrorKind.MANDATORY_FIELD:
        return f"{field} : is mandatory"
    if kind == ErrorKind.EMPTY_FIELD:
        if context == "array":
            return f"{field} : should not be an empty array"
        return f"{field} : should not be empty"
    if kind == ErrorKind.DATATYPE:
        return _render_datatype(field, context)
    if kind == ErrorKind.PATTERN:
        return f"{field} should be in {context} format"
    if kind == ErrorKind.MIN_MAX:
        return _render_min_max(field, context or {})
    if kind == ErrorKind.LENGTH:
        return f"length of {field} should be {context}"
    if kind == ErrorKind.ALLOWED_VALUE:
        return f"Allowed values for {field} are {','.join(to_text(v) for v in context or [])}"
    if kind == ErrorKind.ARRAY_DATATYPE:
        return f"{field} should be an array of {context}"
    if kind == ErrorKind.CUSTOM:
        return str(context)
    return "Unexpected validation error"


def render_failure(failure: ValidationFailure) -> str:
    return render(failure.kind, failure.field_path, failure.context)
