"""Release configuration: env-driven.

Centralized config using pydantic-settings. Reads from a .env file and
BINRELAY_* environment variables. Object store credentials keep the R2_*
names used by existing CI secrets; the BINRELAY_-prefixed spelling is
accepted too.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from binrelay.errors import ConfigurationError


def _store_field(name: str) -> Any:
    return Field(
        default="",
        validation_alias=AliasChoices(f"R2_{name}", f"BINRELAY_R2_{name}"),
    )


class ReleaseConfig(BaseSettings):
    """Release pipeline configuration with environment variable overrides.

    Examples
    --------
    Publish to R2::

        export R2_ACCESS_KEY_ID=...
        export R2_SECRET_ACCESS_KEY=...
        export R2_BUCKET_NAME=releases
        export R2_ENDPOINT=https://<account>.r2.cloudflarestorage.com
        export BINRELAY_ARTIFACT_PREFIX=mytool

    Rehearse against a local directory::

        export BINRELAY_STORE_BACKEND=local
        export BINRELAY_LOCAL_STORE_PATH=/tmp/release-store
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BINRELAY_",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"

    # Object store
    store_backend: Literal["s3", "local"] = "s3"
    local_store_path: Path = Path(".binrelay/store")
    access_key_id: str = _store_field("ACCESS_KEY_ID")
    secret_access_key: str = _store_field("SECRET_ACCESS_KEY")
    bucket_name: str = _store_field("BUCKET_NAME")
    endpoint: str = _store_field("ENDPOINT")
    public_url: str = _store_field("PUBLIC_URL")
    region: str = "auto"

    # Build inputs
    artifact_prefix: str = "app"
    project_root: Path = Path(".")
    bin_dir: Path = Path("bin")
    source_patterns: list[str] = ["**/*.go"]
    exclude_dirs: list[str] = ["test-files"]
    manifest_files: list[str] = ["go.mod", "go.sum"]

    # Extra outputs
    install_script: Path = Path("install.sh")
    mapping_export_path: Path | None = Path("binary-mapping.json")

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"

    def require_store_settings(self) -> None:
        """Raise ``ConfigurationError`` if the selected backend is not fully configured."""
        if self.store_backend == "local":
            return
        required = {
            "R2_ACCESS_KEY_ID": self.access_key_id,
            "R2_SECRET_ACCESS_KEY": self.secret_access_key,
            "R2_BUCKET_NAME": self.bucket_name,
            "R2_ENDPOINT": self.endpoint,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

    def public_base_url(self) -> str:
        """Base URL that published object keys are appended to."""
        if self.public_url:
            return self.public_url.rstrip("/")
        if self.store_backend == "local":
            return self.local_store_path.resolve().as_uri()
        host = self.endpoint.removeprefix("https://").removeprefix("http://").rstrip("/")
        return f"https://{self.bucket_name}.{host}"
