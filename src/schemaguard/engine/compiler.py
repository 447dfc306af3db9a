"""RuleTreeをフィールド単位の検証チェック列にコンパイルする。"""

from collections.abc import Callable, Mapping
from functools import partial
from typing import Any, NamedTuple

from schemaguard.models.result import ErrorKind
from schemaguard.models.schema import DataType, Rule, is_rule_node
from schemaguard.validators.primitives import (
    CheckProvider,
    DefaultCheckProvider,
    normalize_email,
    to_boolean,
    to_float,
    to_int,
)


class _Missing:
    """入力にフィールドが存在しないことを表す番兵。"""

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()

# 検証成功後にサニタイズ済み入力へ書き戻す変換
_COERCERS: dict[str, Callable[[Any], Any]] = {
    "int": to_int,
    "float": to_float,
    "bool": to_boolean,
    "email": normalize_email,
}


class CompiledCheck(NamedTuple):
    """1つの検証ステップ。testがFalseを返すとkindの失敗になる。"""

    kind: ErrorKind
    test: Callable[[Any], bool]
    context: Any = None


class FieldChecks(NamedTuple):
    """1フィールド分のコンパイル済みチェック。checksは優先度順。"""

    path: str
    required: bool
    checks: tuple[CompiledCheck, ...]
    coerce: Callable[[Any], Any] | None = None


def _is_present(value: Any) -> bool:
    return value is not MISSING


def _is_not_empty(value: Any) -> bool:
    return not (value is None or value == "")


def _is_not_empty_array(value: Any) -> bool:
    return not (isinstance(value, list) and len(value) == 0)


def _presence_checks(rule: Rule) -> list[CompiledCheck]:
    if not rule.required:
        return []
    return [
        CompiledCheck(ErrorKind.MANDATORY_FIELD, _is_present),
        CompiledCheck(ErrorKind.EMPTY_FIELD, _is_not_empty),
        CompiledCheck(ErrorKind.EMPTY_FIELD, _is_not_empty_array, "array"),
    ]


def _type_checks(data_type: DataType, provider: CheckProvider) -> list[CompiledCheck]:
    if data_type.is_array:
        checks = [CompiledCheck(ErrorKind.DATATYPE, provider.is_array, "array")]
        if data_type.element:
            checks.append(
                CompiledCheck(
                    ErrorKind.ARRAY_DATATYPE,
                    partial(provider.array_elements_match, kind=data_type.element),
                    data_type.element,
                )
            )
        return checks

    testers: dict[str, Callable[[Any], bool]] = {
        "string": provider.is_string,
        "email": provider.is_email,
        "int": provider.is_int,
        "float": provider.is_float,
        "alpha": provider.is_alpha,
        "alphanumeric": provider.is_alphanumeric,
        "bool": provider.is_boolean,
        "mobile": provider.is_mobile_number,
        "date": provider.is_date,
    }
    return [CompiledCheck(ErrorKind.DATATYPE, testers[data_type.kind], data_type.kind)]


def compile_rule(rule: Rule, path: str, provider: CheckProvider | None = None) -> FieldChecks:
    """1つのRuleを固定カテゴリ順のチェック列に変換する。

    順序: 必須/空 → 型 → 正規表現 → 数値範囲 → 長さ → 許可値。
    数値範囲はint/float、長さはstringの場合のみ適用する。
    """
    provider = provider or DefaultCheckProvider()
    checks = _presence_checks(rule)
    data_type = rule.data_type

    if data_type is not None:
        checks.extend(_type_checks(data_type, provider))

    if rule.regex is not None:
        checks.append(CompiledCheck(ErrorKind.PATTERN, partial(provider.matches_regex, pattern=rule.regex), rule.regex))

    if rule.is_numeric and rule.has_bounds:
        checks.append(
            CompiledCheck(
                ErrorKind.MIN_MAX,
                partial(provider.in_range, min_value=rule.min, max_value=rule.max),
                {"min": rule.min, "max": rule.max},
            )
        )

    if data_type is not None and data_type.kind == "string" and rule.length is not None:
        checks.append(
            CompiledCheck(ErrorKind.LENGTH, partial(provider.has_exact_length, length=rule.length), rule.length)
        )

    if rule.allowed_values is not None:
        allowed = tuple(rule.allowed_values)
        checks.append(CompiledCheck(ErrorKind.ALLOWED_VALUE, partial(provider.is_member, values=allowed), allowed))

    coerce = _COERCERS.get(data_type.kind) if data_type is not None else None
    return FieldChecks(path=path, required=rule.required, checks=tuple(checks), coerce=coerce)


def compile_rule_tree(
    tree: Mapping[str, Any],
    prefix: str = "",
    provider: CheckProvider | None = None,
) -> list[FieldChecks]:
    """メタバリデーション済みのRuleTreeをツリー順のFieldChecksリストに変換する。

    Args:
        tree: フィールド名 → Rule または ネストしたRuleTree のマッピング。
        prefix: 親フィールドのパス。トップレベルでは空文字。
        provider: プリミティブチェックの実装。Noneの場合はDefaultCheckProvider。

    Returns:
        ツリーの列挙順に並んだFieldChecksのリスト。
    """
    provider = provider or DefaultCheckProvider()
    compiled: list[FieldChecks] = []
    for key, node in tree.items():
        full_path = f"{prefix}.{key}" if prefix else key
        if is_rule_node(node):
            compiled.append(compile_rule(Rule.model_validate(node), full_path, provider))
        else:
            compiled.extend(compile_rule_tree(node, full_path, provider))
    return compiled
