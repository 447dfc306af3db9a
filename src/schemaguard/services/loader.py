"""スキーマファイルの読み込みとルートレジストリの構築。"""

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from schemaguard.models.errors import SchemaFileError, SchemaValidationError
from schemaguard.routing.registry import RouteRegistry
from schemaguard.validators.primitives import CheckProvider
from schemaguard.validators.schema import SchemaValidator

logger = logging.getLogger(__name__)


def load_schema(schema_file: Path) -> Any:
    """スキーマファイル（YAMLまたはJSON）から `schema` キーの内容を読み込む。

    Raises:
        SchemaFileError: ファイルが存在しない、解析できない、`schema` キーがない場合。
    """
    try:
        with open(schema_file, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise SchemaFileError(f"Schema file not found: {schema_file}", str(schema_file)) from None
    except yaml.YAMLError as e:
        raise SchemaFileError(f"Schema file could not be parsed: {schema_file}: {e}", str(schema_file)) from None

    if not isinstance(data, Mapping) or "schema" not in data:
        raise SchemaFileError(f"Could not find 'schema' in {schema_file}", str(schema_file))
    return data["schema"]


def build_registry(schema: Any, provider: CheckProvider | None = None) -> RouteRegistry:
    """スキーマをメタバリデーションし、問題がなければ全ルートを登録する。

    Args:
        schema: ルートパターン → RuleTree のスキーマ文書。
        provider: プリミティブチェックの実装。

    Returns:
        登録済みのRouteRegistry。

    Raises:
        SchemaValidationError: スキーマが不正な場合。検出された全エラーを保持する。
    """
    report = SchemaValidator().validate(schema)
    if not report.valid:
        for error in report.errors:
            logger.error("Schema error: %s", error)
        raise SchemaValidationError(report.errors)

    registry = RouteRegistry(provider)
    for pattern, rule_tree in schema.items():
        registry.register(pattern, rule_tree)
    logger.info("Loaded %d route(s) from schema", len(registry))
    return registry


def load_registry(schema_file: Path, provider: CheckProvider | None = None) -> RouteRegistry:
    """スキーマファイルを読み込んでRouteRegistryを構築する。"""
    return build_registry(load_schema(schema_file), provider)
