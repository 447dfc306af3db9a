"""ルートパターンのコンパイルと、パス → RuleTree の解決。"""

import copy
import logging
import re
from collections.abc import Mapping
from typing import Any, NamedTuple

from starlette.convertors import CONVERTOR_TYPES, Convertor
from starlette.routing import PARAM_REGEX, compile_path

from schemaguard.engine.compiler import FieldChecks, compile_rule_tree
from schemaguard.models.errors import InvalidRoutePatternError
from schemaguard.validators.primitives import CheckProvider

logger = logging.getLogger(__name__)

# Express形式の `:name` プレースホルダ
_COLON_PARAM_RE = re.compile(r"(?<=[/.\-]):([a-zA-Z_][a-zA-Z0-9_]*)")


class RouteMatcher:
    """コンパイル済みのルートパターン。

    大文字小文字を区別せず、末尾スラッシュの有無を許容する。
    """

    def __init__(self, pattern: str, regex: re.Pattern[str], convertors: dict[str, Convertor[Any]]) -> None:
        self.pattern = pattern
        self._regex = regex
        self._convertors = convertors

    def match(self, path: str) -> dict[str, Any] | None:
        """パスが一致すればパスパラメータを、一致しなければNoneを返す。"""
        found = self._regex.match(path)
        if found is None and len(path) > 1 and path.endswith("/"):
            found = self._regex.match(path.rstrip("/"))
        if found is None:
            return None
        return {key: self._convertors[key].convert(value) for key, value in found.groupdict().items()}

    def __repr__(self) -> str:
        return f"RouteMatcher({self.pattern!r})"


def compile_route(pattern: str) -> RouteMatcher:
    """ルートパターンをマッチャーにコンパイルする。

    `{id}` / `{id:int}` のstarlette形式と `:id` のExpress形式の両方を受け付ける。

    Raises:
        InvalidRoutePatternError: パターンが不正な場合。
    """
    if not pattern.startswith("/"):
        raise InvalidRoutePatternError(pattern, "must start with '/'")

    path = _COLON_PARAM_RE.sub(r"{\1}", pattern)
    for _, convertor_type in PARAM_REGEX.findall(path):
        convertor_name = convertor_type.lstrip(":")
        if convertor_name and convertor_name not in CONVERTOR_TYPES:
            raise InvalidRoutePatternError(pattern, f"unknown path convertor '{convertor_name}'")

    try:
        regex, _, convertors = compile_path(path)
    except ValueError as e:
        raise InvalidRoutePatternError(pattern, str(e)) from None
    return RouteMatcher(pattern, re.compile(regex.pattern, re.IGNORECASE), convertors)


class CompiledRoute(NamedTuple):
    """登録済みルート。マッチャー、RuleTree、コンパイル済みチェックを保持する。"""

    pattern: str
    matcher: RouteMatcher
    rule_tree: Mapping[str, Any]
    field_checks: tuple[FieldChecks, ...]


class RouteMatch(NamedTuple):
    """パス解決の結果。"""

    route: CompiledRoute
    params: dict[str, Any]


class RouteRegistry:
    """登録順を保持するルートのレジストリ。

    起動時にregisterで構築し、以降は読み取り専用として並行リクエストから参照する。
    解決は登録順の先勝ち（最長一致ではない）。
    """

    def __init__(self, provider: CheckProvider | None = None) -> None:
        self._provider = provider
        self._routes: list[CompiledRoute] = []

    def register(self, pattern: str, rule_tree: Mapping[str, Any]) -> CompiledRoute:
        """ルートパターンとRuleTreeをコンパイルしてレジストリに追加する。"""
        tree = copy.deepcopy(dict(rule_tree))
        route = CompiledRoute(
            pattern=pattern,
            matcher=compile_route(pattern),
            rule_tree=tree,
            field_checks=tuple(compile_rule_tree(tree, provider=self._provider)),
        )
        self._routes.append(route)
        logger.debug("Registered route %s with %d field(s)", pattern, len(route.field_checks))
        return route

    @property
    def routes(self) -> tuple[CompiledRoute, ...]:
        return tuple(self._routes)

    def match(self, path: str) -> RouteMatch | None:
        """パスに最初に一致したルートとパスパラメータを返す。

        マウントプレフィックスの除去は呼び出し側の責務。
        """
        for route in self._routes:
            params = route.matcher.match(path)
            if params is not None:
                return RouteMatch(route=route, params=params)
        return None

    def resolve(self, path: str) -> Mapping[str, Any] | None:
        """パスに最初に一致したルートのRuleTreeを返す。一致しなければNone。"""
        found = self.match(path)
        return found.route.rule_tree if found is not None else None

    def __len__(self) -> int:
        return len(self._routes)
