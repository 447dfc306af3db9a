"""スキーマ文書のメタバリデーションロジック。"""

import re
from collections.abc import Mapping
from typing import Any

from schemaguard.models.errors import InvalidRoutePatternError
from schemaguard.models.schema import RULE_KEYS, SchemaValidationReport, is_rule_node, is_supported_data_type
from schemaguard.routing.registry import compile_route


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


class SchemaValidator:
    """リクエスト時に使う前にスキーマ文書の構造を検証する。

    最初のエラーで止まらず、検出したエラーをすべて収集する。
    入力は変更しない。
    """

    def validate(self, schema: Any) -> SchemaValidationReport:
        """スキーマ文書（ルートパターン → RuleTree）を検証する。

        Args:
            schema: 検証対象のスキーマ文書。

        Returns:
            検証結果。errorsが空の場合のみvalidがTrueになる。
        """
        errors: list[str] = []
        if not isinstance(schema, Mapping):
            errors.append("Schema must be an object")
            return SchemaValidationReport(valid=False, errors=errors)

        for route, route_schema in schema.items():
            if not isinstance(route, str):
                errors.append("Route must be a string")
                continue
            if not isinstance(route_schema, Mapping):
                errors.append(f"Route '{route}': Must contain an object of validation rules")
                continue
            try:
                compile_route(route)
            except InvalidRoutePatternError as e:
                errors.append(f"Route '{route}': Invalid route pattern ({e.reason})")
            self._check_tree(route_schema, route, errors)

        return SchemaValidationReport(valid=not errors, errors=errors)

    def _check_tree(self, tree: Mapping[str, Any], path: str, errors: list[str]) -> None:
        """ネストしたRuleTreeを再帰的に検証する。"""
        for key, node in tree.items():
            node_path = f"{path}.{key}" if path else str(key)
            if not isinstance(key, str):
                errors.append(f"{node_path}: Field name must be a string")
                continue
            if is_rule_node(node):
                self._check_rule(node, node_path, errors)
            elif isinstance(node, Mapping):
                self._check_tree(node, node_path, errors)
            else:
                errors.append(f"{node_path}: Invalid schema structure")

    @staticmethod
    def _check_rule(rule: Mapping[str, Any], path: str, errors: list[str]) -> None:
        """Ruleノードのキーと値の型を検証する。"""
        for key in rule:
            if key not in RULE_KEYS:
                errors.append(f"{path}: Unknown property '{key}'")

        if "required" in rule and not isinstance(rule["required"], bool):
            errors.append(f"{path}: 'required' must be a boolean")

        if "dataType" in rule:
            data_type = rule["dataType"]
            if not isinstance(data_type, str):
                errors.append(f"{path}: 'dataType' must be a string")
            elif not is_supported_data_type(data_type):
                errors.append(f"{path}: Invalid dataType '{data_type}'")

        if "regex" in rule:
            pattern = rule["regex"]
            if not isinstance(pattern, str):
                errors.append(f"{path}: 'regex' must be a string")
            else:
                try:
                    re.compile(pattern)
                except re.error as e:
                    errors.append(f"{path}: 'regex' is not a valid pattern ({e})")

        for key in ("min", "max"):
            if key in rule and not _is_number(rule[key]):
                errors.append(f"{path}: '{key}' must be a number")

        if "length" in rule:
            length = rule["length"]
            if not isinstance(length, int) or isinstance(length, bool) or length < 0:
                errors.append(f"{path}: 'length' must be a non-negative integer")

        if "allowedValues" in rule and not isinstance(rule["allowedValues"], list):
            errors.append(f"{path}: 'allowedValues' must be an array")
