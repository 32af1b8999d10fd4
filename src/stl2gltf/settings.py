"""Environment-based configuration via pydantic-settings."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Server and conversion settings, configurable via STL2GLTF_* env vars."""

    model_config = {"env_prefix": "STL2GLTF_"}

    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"
    strict_indices: bool = False
    max_upload_bytes: int = 64 * 1024 * 1024
    generator: str = "stl2gltf"
    # Parent of the per-request directories written by /convert/gltf.
    # None means the system temp directory.
    output_root: Path | None = None
