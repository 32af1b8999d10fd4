"""Pydantic models for conversion parameters and API responses."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, field_validator


class FileFormat(str, Enum):
    """Output formats the converter can write."""

    STL = "stl"
    GLTF = "gltf"
    GLB = "glb"


_EXTENSIONS = {
    FileFormat.STL: "stl",
    FileFormat.GLTF: "gltf",
    FileFormat.GLB: "glb",
}


def get_extension(file_format: FileFormat) -> str:
    """File extension (without the dot) for an output format."""
    return _EXTENSIONS[FileFormat(file_format)]


class ConvertParams(BaseModel):
    """Parameters for a single STL conversion."""

    name: str = "model"
    with_indices: bool = True
    strict: bool = False

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        """Names become file stems, so reject anything path-like."""
        if not v or v in (".", "..") or "/" in v or "\\" in v:
            from stl2gltf.errors import InputError
            raise InputError(f"name must be a plain file stem, got '{v}'")
        return v


class ConvertResponse(BaseModel):
    """Result of a split (.gltf + .bin) conversion.

    ``output_id`` names the directory for DELETE /outputs/{output_id}.
    """

    output_id: str
    output_dir: str
    files: list[str]
    vertex_count: int
    triangle_count: int


class ErrorResponse(BaseModel):
    """Error response body."""

    error_type: str
    message: str
    detail: str | None = None
