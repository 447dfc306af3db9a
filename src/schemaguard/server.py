"""検証済み入力を返すASGIアプリケーションのエントリポイント。"""

from collections.abc import Sequence
from typing import Any

from starlette.applications import Starlette
from starlette.datastructures import UploadFile
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from schemaguard.config import ServerConfig
from schemaguard.engine.evaluator import CustomCheck
from schemaguard.middleware import RequestValidationMiddleware
from schemaguard.services.loader import load_registry
from schemaguard.services.request import RequestValidationService
from schemaguard.validators.primitives import DefaultCheckProvider

_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def _jsonable(value: Any) -> Any:
    """アップロードファイルをファイル名に置き換え、JSONで返せる形にする。"""
    if isinstance(value, UploadFile):
        return value.filename
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_jsonable(item) for item in value]
    return value


def create_app(config: ServerConfig | None = None, custom_checks: Sequence[CustomCheck] = ()) -> Starlette:
    """スキーマを読み込み、検証ミドルウェアを組み込んだアプリを作成する。

    スキーマの読み込みと検証はリクエスト受付前にここで完了させる。

    Args:
        config: サーバー設定。Noneの場合はデフォルト設定を使用。
        custom_checks: スキーマ検証の後に実行する入力全体のチェック。

    Returns:
        設定済みのStarletteインスタンス。

    Raises:
        SchemaFileError: スキーマファイルを読み込めない場合。
        SchemaValidationError: スキーマが不正な場合。
    """
    if config is None:
        config = ServerConfig()

    registry = load_registry(config.schema_file, DefaultCheckProvider(config.mobile_locale))
    service = RequestValidationService(registry, custom_checks)

    # ヘルスチェックエンドポイント
    async def health_check(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "routes": len(registry)})

    async def echo_input(request: Request) -> JSONResponse:
        return JSONResponse({"input": _jsonable(request.state.input)})

    routes = [Route("/health", health_check, methods=["GET"])]
    if config.mount_prefix:
        routes.append(Route(config.mount_prefix.rstrip("/") + "/health", health_check, methods=["GET"]))
    routes.append(Route("/{path:path}", echo_input, methods=_ALL_METHODS))

    return Starlette(
        routes=routes,
        middleware=[Middleware(RequestValidationMiddleware, service=service, mount_prefix=config.mount_prefix)],
    )
