"""フィールド値に対するプリミティブな型・書式チェック。

コンパイラはCheckProviderプロトコルを通してのみチェックを呼び出す。
数値やブール値はJSON由来の値を文字列化した表現で判定する。
"""

import re
from collections.abc import Sequence
from datetime import datetime
from typing import Any, Protocol

from schemaguard.models.schema import DATE_FORMAT

_INT_PATTERN = re.compile(r"^[-+]?(?:0|[1-9][0-9]*)$")
_FLOAT_PATTERN = re.compile(r"^[-+]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][-+]?[0-9]+)?$")
_EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
_ALPHA_PATTERN = re.compile(r"^[A-Za-z]+$")
_ALPHANUMERIC_PATTERN = re.compile(r"^[0-9A-Za-z]+$")
_BOOLEAN_VALUES = frozenset({"true", "false", "1", "0"})

MOBILE_PATTERNS: dict[str, re.Pattern[str]] = {
    "en-IN": re.compile(r"^(\+?91|0)?[6789]\d{9}$"),
    "en-US": re.compile(r"^((\+1|1)?( |-)?)?(\([2-9][0-9]{2}\)|[2-9][0-9]{2})( |-)?([2-9][0-9]{2}( |-)?[0-9]{4})$"),
    "en-GB": re.compile(r"^(\+?44|0)7\d{9}$"),
    "ja-JP": re.compile(r"^(\+81[ \-]?(\(0\))?|0)[6789]0[ \-]?\d{4}[ \-]?\d{4}$"),
}

# 日付フォーマットのトークン → (strptime指令, 桁数)
_DATE_TOKENS: dict[str, tuple[str, int]] = {"YYYY": ("%Y", 4), "MM": ("%m", 2), "DD": ("%d", 2)}


def to_text(value: Any) -> str:
    """値をJSON風の文字列表現に変換する。"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_int(value: Any) -> int:
    return int(to_text(value))


def to_float(value: Any) -> float:
    return float(to_text(value))


def to_boolean(value: Any) -> bool:
    """`0` / `false` / 空文字以外をTrueとみなす。"""
    return to_text(value).lower() not in ("0", "false", "")


def normalize_email(value: Any) -> str:
    return to_text(value).lower()


def _date_parts(date_format: str) -> tuple[str, re.Pattern[str]]:
    strptime_format = date_format
    shape = re.escape(date_format)
    for token, (directive, digits) in _DATE_TOKENS.items():
        strptime_format = strptime_format.replace(token, directive)
        shape = shape.replace(token, rf"\d{{{digits}}}")
    return strptime_format, re.compile(f"^{shape}$")


class CheckProvider(Protocol):
    """コンパイラが利用するプリミティブチェックの集合。"""

    def is_string(self, value: Any) -> bool: ...

    def is_email(self, value: Any) -> bool: ...

    def is_int(self, value: Any) -> bool: ...

    def is_float(self, value: Any) -> bool: ...

    def is_alpha(self, value: Any) -> bool: ...

    def is_alphanumeric(self, value: Any) -> bool: ...

    def is_boolean(self, value: Any) -> bool: ...

    def is_mobile_number(self, value: Any, locale: str | None = None) -> bool: ...

    def is_date(self, value: Any, date_format: str = DATE_FORMAT) -> bool: ...

    def matches_regex(self, value: Any, pattern: str) -> bool: ...

    def is_array(self, value: Any) -> bool: ...

    def array_elements_match(self, value: Any, kind: str) -> bool: ...

    def in_range(self, value: Any, min_value: float | None = None, max_value: float | None = None) -> bool: ...

    def has_exact_length(self, value: Any, length: int) -> bool: ...

    def is_member(self, value: Any, values: Sequence[Any]) -> bool: ...


class DefaultCheckProvider:
    """正規表現と標準ライブラリによるCheckProvider実装。"""

    def __init__(self, mobile_locale: str = "en-IN") -> None:
        if mobile_locale not in MOBILE_PATTERNS:
            raise ValueError(f"Unsupported mobile locale: {mobile_locale}")
        self._mobile_locale = mobile_locale

    def is_string(self, value: Any) -> bool:
        return isinstance(value, str)

    def is_email(self, value: Any) -> bool:
        return _EMAIL_PATTERN.match(to_text(value)) is not None

    def is_int(self, value: Any) -> bool:
        if isinstance(value, bool):
            return False
        return _INT_PATTERN.match(to_text(value)) is not None

    def is_float(self, value: Any) -> bool:
        if isinstance(value, bool):
            return False
        return _FLOAT_PATTERN.match(to_text(value)) is not None

    def is_alpha(self, value: Any) -> bool:
        return _ALPHA_PATTERN.match(to_text(value)) is not None

    def is_alphanumeric(self, value: Any) -> bool:
        return _ALPHANUMERIC_PATTERN.match(to_text(value)) is not None

    def is_boolean(self, value: Any) -> bool:
        return to_text(value) in _BOOLEAN_VALUES

    def is_mobile_number(self, value: Any, locale: str | None = None) -> bool:
        pattern = MOBILE_PATTERNS[locale or self._mobile_locale]
        return isinstance(value, str | int) and not isinstance(value, bool) and pattern.match(to_text(value)) is not None

    def is_date(self, value: Any, date_format: str = DATE_FORMAT) -> bool:
        text = to_text(value)
        strptime_format, shape = _date_parts(date_format)
        if shape.match(text) is None:
            return False
        try:
            datetime.strptime(text, strptime_format)
        except ValueError:
            return False
        return True

    def matches_regex(self, value: Any, pattern: str) -> bool:
        if isinstance(value, list):
            return all(self.matches_regex(item, pattern) for item in value)
        return re.search(pattern, to_text(value)) is not None

    def is_array(self, value: Any) -> bool:
        return isinstance(value, list)

    def array_elements_match(self, value: Any, kind: str) -> bool:
        if not isinstance(value, list):
            return False
        return all(self._element_matches(item, kind) for item in value)

    def _element_matches(self, item: Any, kind: str) -> bool:
        if kind in ("number", "float"):
            return isinstance(item, int | float) and not isinstance(item, bool)
        if kind == "string":
            return isinstance(item, str)
        if kind == "bool":
            return isinstance(item, bool)
        if kind == "mobile":
            return isinstance(item, str) and self.is_mobile_number(item)
        return False

    def in_range(self, value: Any, min_value: float | None = None, max_value: float | None = None) -> bool:
        try:
            number = to_float(value)
        except ValueError:
            return False
        if min_value is not None and number < min_value:
            return False
        return max_value is None or number <= max_value

    def has_exact_length(self, value: Any, length: int) -> bool:
        return len(to_text(value)) == length

    def is_member(self, value: Any, values: Sequence[Any]) -> bool:
        allowed = {to_text(v) for v in values}
        if isinstance(value, list):
            return all(to_text(item) in allowed for item in value)
        return to_text(value) in allowed
