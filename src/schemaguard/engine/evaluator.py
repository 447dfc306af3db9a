"""コンパイル済みチェックをリクエスト入力に対して実行する。"""

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from schemaguard.engine.compiler import MISSING, FieldChecks
from schemaguard.engine.messages import render_failure
from schemaguard.models.result import ErrorKind, ValidationFailure, ValidationOutcome

logger = logging.getLogger(__name__)

CustomCheck = Callable[[dict[str, Any]], str | None]


def resolve_field(data: Mapping[str, Any], path: str) -> Any:
    """ドット区切りのパスでネストした入力から値を取り出す。存在しなければMISSING。"""
    current: Any = data
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return MISSING
        current = current[part]
    return current


def _copy_containers(value: Any) -> Any:
    """辞書とリストだけを再帰的に複製する。ファイルなどの葉はそのまま共有する。"""
    if isinstance(value, Mapping):
        return {key: _copy_containers(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_copy_containers(item) for item in value]
    return value


def _assign_field(data: dict[str, Any], path: str, value: Any) -> None:
    *parents, leaf = path.split(".")
    current = data
    for part in parents:
        current = current[part]
    current[leaf] = value


class RuleEvaluator:
    """FieldChecksリストを評価し、最優先の失敗を1つだけ選ぶ。

    評価中の状態はすべてリクエストローカルに保持するため、
    同じインスタンスを並行リクエストで共有してよい。
    """

    def __init__(self, custom_checks: Sequence[CustomCheck] = ()) -> None:
        self._custom_checks = tuple(custom_checks)

    def evaluate(self, field_checks: Sequence[FieldChecks], data: Mapping[str, Any]) -> ValidationOutcome:
        """入力全体を検証する。

        Args:
            field_checks: ツリー順のコンパイル済みチェック。
            data: body → query → params の順にマージされた入力。

        Returns:
            評価結果。失敗時は最も優先度の高い（値の小さい）失敗とそのメッセージを含む。
            同じ優先度の失敗が複数ある場合はツリー順で先のものを採用する。
        """
        sanitized = _copy_containers(data)
        failures: list[ValidationFailure] = []
        for field in field_checks:
            failure = self._evaluate_field(field, sanitized)
            if failure is not None:
                failures.append(failure)

        if failures:
            # minは同値の場合に先頭の要素を返す
            selected = min(failures, key=lambda f: f.priority)
            logger.debug("%d field(s) failed, reporting %s on %s", len(failures), selected.kind.name, selected.field_path)
            return ValidationOutcome(failure=selected, message=render_failure(selected), data=sanitized)

        for custom_check in self._custom_checks:
            message = custom_check(sanitized)
            if message:
                failure = ValidationFailure(field_path="", kind=ErrorKind.CUSTOM, context=message)
                return ValidationOutcome(failure=failure, message=message, data=sanitized)

        return ValidationOutcome(data=sanitized)

    @staticmethod
    def _evaluate_field(field: FieldChecks, sanitized: dict[str, Any]) -> ValidationFailure | None:
        """1フィールドのチェックを順に実行し、最初の失敗で打ち切る。"""
        value = resolve_field(sanitized, field.path)
        if isinstance(value, str):
            value = value.strip()
        if value is MISSING and not field.required:
            return None

        for check in field.checks:
            if not check.test(value):
                return ValidationFailure(field_path=field.path, kind=check.kind, context=check.context)

        _assign_field(sanitized, field.path, field.coerce(value) if field.coerce else value)
        return None
