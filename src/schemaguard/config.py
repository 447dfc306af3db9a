"""schemaguardの設定管理。"""

from pathlib import Path

from pydantic_settings import BaseSettings

_PACKAGE_ROOT = Path(__file__).parent
_REPO_ROOT = _PACKAGE_ROOT.parent.parent


class ServerConfig(BaseSettings):
    """サーバー設定。環境変数から読み込み可能。"""

    model_config = {"env_prefix": "SCHEMAGUARD_"}

    schema_file: Path = _REPO_ROOT / "config" / "schema.yaml"
    # アプリのマウント先（例: "/api"）。ルート照合前にパスから取り除く
    mount_prefix: str = ""
    mobile_locale: str = "en-IN"
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
