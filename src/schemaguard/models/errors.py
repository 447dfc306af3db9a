"""schemaguardのカスタム例外クラス。"""


class SchemaGuardError(Exception):
    """schemaguardの基底例外クラス。"""


class SchemaFileError(SchemaGuardError):
    """スキーマファイルの読み込みに失敗した場合の例外。"""

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path


class SchemaValidationError(SchemaGuardError):
    """スキーマのメタバリデーションに失敗した場合の例外。

    起動を中断させるためのエラー。検出された全エラーを保持する。
    """

    def __init__(self, errors: list[str]) -> None:
        super().__init__("Not a valid schema: " + "; ".join(errors))
        self.errors = errors


class RouteNotFoundError(SchemaGuardError):
    """リクエストパスに一致するルートが登録されていない場合の例外。"""

    def __init__(self, path: str) -> None:
        super().__init__(f"Invalid request. Could not find {path}")
        self.path = path


class InvalidRoutePatternError(SchemaGuardError):
    """ルートパターンをコンパイルできない場合の例外。"""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"Invalid route pattern '{pattern}': {reason}")
        self.pattern = pattern
        self.reason = reason


class InvalidRequestBodyError(SchemaGuardError):
    """リクエストボディを入力として解釈できない場合の例外。"""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid request body: {reason}")
        self.reason = reason
