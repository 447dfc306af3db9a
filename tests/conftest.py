"""テスト共通フィクスチャ。"""

from pathlib import Path

import pytest

from schemaguard.config import ServerConfig
from schemaguard.routing.registry import RouteRegistry
from schemaguard.services.loader import load_registry
from schemaguard.services.request import RequestValidationService
from schemaguard.validators.primitives import DefaultCheckProvider


@pytest.fixture
def config_dir() -> Path:
    """設定ファイルディレクトリ。"""
    return Path(__file__).parent.parent / "config"


@pytest.fixture
def schema_file(config_dir: Path) -> Path:
    """サンプルスキーマファイル。"""
    return config_dir / "schema.yaml"


@pytest.fixture
def provider() -> DefaultCheckProvider:
    """テスト用CheckProvider。"""
    return DefaultCheckProvider()


@pytest.fixture
def registry(schema_file: Path) -> RouteRegistry:
    """サンプルスキーマから構築したRouteRegistry。"""
    return load_registry(schema_file)


@pytest.fixture
def request_service(registry: RouteRegistry) -> RequestValidationService:
    """テスト用RequestValidationService。"""
    return RequestValidationService(registry)


@pytest.fixture
def server_config(schema_file: Path) -> ServerConfig:
    """テスト用ServerConfig。"""
    return ServerConfig(schema_file=schema_file)
