"""リクエスト単位の検証フロー。"""

from collections.abc import Mapping, Sequence
from typing import Any

from schemaguard.engine.evaluator import CustomCheck, RuleEvaluator
from schemaguard.models.errors import RouteNotFoundError
from schemaguard.models.result import ValidationOutcome
from schemaguard.routing.registry import RouteMatch, RouteRegistry


def merge_input(
    body: Mapping[str, Any] | None = None,
    query: Mapping[str, Any] | None = None,
    params: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """body → query → params の順に重ねて1つの入力にする。

    同じキーは後のレイヤーが上書きする（params > query > body）。
    """
    merged: dict[str, Any] = {}
    for layer in (body, query, params):
        if layer:
            merged.update(layer)
    return merged


class RequestValidationService:
    """パスからルートを解決し、マージした入力を評価する。"""

    def __init__(self, registry: RouteRegistry, custom_checks: Sequence[CustomCheck] = ()) -> None:
        self._registry = registry
        self._evaluator = RuleEvaluator(custom_checks)

    @property
    def registry(self) -> RouteRegistry:
        return self._registry

    def match(self, path: str) -> RouteMatch:
        """パスに一致するルートを返す。

        Raises:
            RouteNotFoundError: 一致するルートがない場合。
        """
        found = self._registry.match(path)
        if found is None:
            raise RouteNotFoundError(path)
        return found

    def validate(
        self,
        path: str,
        body: Mapping[str, Any] | None = None,
        query: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> ValidationOutcome:
        """1リクエスト分の入力を検証する。

        Args:
            path: マウントプレフィックス除去済みのリクエストパス。
            body: リクエストボディ。
            query: クエリパラメータ。
            params: 明示的なパスパラメータ。ルートから抽出したパラメータを上書きする。

        Returns:
            評価結果。

        Raises:
            RouteNotFoundError: 一致するルートがない場合。
        """
        found = self.match(path)
        path_params = {**found.params, **(params or {})}
        return self._evaluator.evaluate(found.route.field_checks, merge_input(body, query, path_params))
