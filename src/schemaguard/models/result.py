"""リクエスト評価結果のデータモデル。"""

from enum import IntEnum
from typing import Any

from pydantic import BaseModel, Field


class ErrorKind(IntEnum):
    """検証エラーの種別。値が小さいほど優先して報告される。"""

    MANDATORY_FIELD = 0
    EMPTY_FIELD = 1
    DATATYPE = 2
    PATTERN = 3
    MIN_MAX = 4
    LENGTH = 5
    ALLOWED_VALUE = 6
    ARRAY_DATATYPE = 7
    CUSTOM = 8


class ValidationFailure(BaseModel):
    """フィールド単位の検証失敗。"""

    field_path: str
    kind: ErrorKind
    context: Any = None

    @property
    def priority(self) -> int:
        return int(self.kind)


class ValidationOutcome(BaseModel):
    """1リクエスト分の評価結果。

    failureがNoneの場合は検証成功。dataはサニタイズ済みのマージ入力。
    """

    failure: ValidationFailure | None = None
    message: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.failure is None
