"""バリデーションスキーマ関連のデータモデル。"""

from collections.abc import Mapping
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

RULE_KEYS: frozenset[str] = frozenset({"required", "dataType", "regex", "min", "max", "length", "allowedValues"})

SCALAR_KINDS: frozenset[str] = frozenset(
    {"int", "string", "mobile", "bool", "float", "date", "alpha", "alphanumeric", "email"}
)
ARRAY_ELEMENT_KINDS: frozenset[str] = frozenset({"number", "string", "mobile", "bool", "float"})
NUMERIC_KINDS: frozenset[str] = frozenset({"int", "float"})

DATE_FORMAT = "YYYY-MM-DD"


class DataType(NamedTuple):
    """dataType文字列を分解した結果。"""

    kind: str
    element: str | None = None

    @property
    def is_array(self) -> bool:
        return self.kind == "array"

    @classmethod
    def parse(cls, value: str) -> "DataType":
        """`array+string` 形式の文字列を (kind, element) に分解する。"""
        kind, sep, element = value.partition("+")
        return cls(kind=kind, element=element if sep else None)


def is_supported_data_type(value: str) -> bool:
    """dataTypeがサポート対象の値かどうかを判定する。"""
    data_type = DataType.parse(value)
    if data_type.is_array:
        return data_type.element is None or data_type.element in ARRAY_ELEMENT_KINDS
    return data_type.element is None and data_type.kind in SCALAR_KINDS


def is_rule_node(node: Any) -> bool:
    """ノードがRule（検証リーフ）かネストしたRuleTreeかを判定する。

    ルール固有キーを1つでも含むマッピングはRuleとして扱う。
    メタバリデーションとコンパイルの両方で同じ判定を使う。
    """
    return isinstance(node, Mapping) and any(key in RULE_KEYS for key in node)


class Rule(BaseModel):
    """1フィールド分のバリデーションルール。

    メタバリデーション済みのノードから生成する。
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    required: bool = False
    data_type: DataType | None = Field(default=None, alias="dataType")
    regex: str | None = None
    min: int | float | None = None
    max: int | float | None = None
    length: int | None = None
    allowed_values: list[Any] | None = Field(default=None, alias="allowedValues")

    @field_validator("data_type", mode="before")
    @classmethod
    def _parse_data_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return DataType.parse(value)
        return value

    @property
    def is_numeric(self) -> bool:
        return self.data_type is not None and self.data_type.kind in NUMERIC_KINDS

    @property
    def has_bounds(self) -> bool:
        return self.min is not None or self.max is not None


class SchemaValidationReport(BaseModel):
    """スキーマのメタバリデーション結果。"""

    valid: bool
    errors: list[str] = Field(default_factory=list)
