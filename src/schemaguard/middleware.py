"""リクエスト検証ミドルウェア。"""

import json
import logging
from typing import Any

from starlette.datastructures import FormData, QueryParams
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp

from schemaguard.models.errors import InvalidRequestBodyError, SchemaGuardError
from schemaguard.services.request import RequestValidationService

logger = logging.getLogger(__name__)

_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def _multi_to_dict(items: QueryParams | FormData) -> dict[str, Any]:
    """複数値を持つキーはリスト、単一値はそのままの辞書に変換する。"""
    result: dict[str, Any] = {}
    for key in items.keys():
        values = items.getlist(key)
        result[key] = values if len(values) > 1 else values[0]
    return result


class RequestValidationMiddleware(BaseHTTPMiddleware):
    """スキーマに基づいてリクエスト入力を検証するミドルウェア。

    body・query・パスパラメータをマージして検証し、失敗時は最優先のエラー
    メッセージを400で返す。成功時はサニタイズ済みの入力を request.state.input に格納する。
    /health はヘルスチェック用のため検証をスキップする。
    """

    SKIP_PATHS = {"/health"}

    def __init__(self, app: ASGIApp, service: RequestValidationService, mount_prefix: str = "") -> None:
        super().__init__(app)
        self.service = service
        self.mount_prefix = mount_prefix.rstrip("/")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = self._strip_prefix(request.url.path)
        if request.url.path in self.SKIP_PATHS or path in self.SKIP_PATHS:
            return await call_next(request)

        try:
            body = await self._read_body(request)
            outcome = self.service.validate(path, body=body, query=_multi_to_dict(request.query_params))
        except SchemaGuardError as e:
            logger.info("Rejected %s %s: %s", request.method, path, e)
            return PlainTextResponse(str(e), status_code=400)

        if not outcome.ok:
            logger.info("Rejected %s %s: %s", request.method, path, outcome.message)
            return PlainTextResponse(outcome.message or "", status_code=400)

        request.state.input = outcome.data
        return await call_next(request)

    def _strip_prefix(self, path: str) -> str:
        if self.mount_prefix and (path == self.mount_prefix or path.startswith(self.mount_prefix + "/")):
            return path[len(self.mount_prefix) :] or "/"
        return path

    @staticmethod
    async def _read_body(request: Request) -> dict[str, Any]:
        """JSONまたはフォームのボディを辞書として読み込む。その他の形式は空扱い。"""
        content_type = request.headers.get("content-type", "")
        if content_type.startswith("application/json"):
            raw = await request.body()
            if not raw.strip():
                return {}
            try:
                data = json.loads(raw)
            except (json.JSONDecodeError, UnicodeDecodeError):
                raise InvalidRequestBodyError("malformed JSON") from None
            if not isinstance(data, dict):
                raise InvalidRequestBodyError("JSON body must be an object")
            return data
        if content_type.startswith(_FORM_CONTENT_TYPES):
            return _multi_to_dict(await request.form())
        return {}
