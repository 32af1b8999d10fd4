"""Tests for config models and settings."""

import pytest
from pydantic import ValidationError

from stl2gltf.config import (
    ConvertParams,
    ConvertResponse,
    ErrorResponse,
    FileFormat,
    get_extension,
)
from stl2gltf.errors import InputError
from stl2gltf.settings import Settings


class TestFileFormat:
    def test_extensions(self):
        assert get_extension(FileFormat.STL) == "stl"
        assert get_extension(FileFormat.GLTF) == "gltf"
        assert get_extension(FileFormat.GLB) == "glb"

    def test_from_string(self):
        assert get_extension("glb") == "glb"
        with pytest.raises(ValueError):
            get_extension("obj")


class TestConvertParams:
    def test_defaults(self):
        p = ConvertParams()
        assert p.name == "model"
        assert p.with_indices is True
        assert p.strict is False

    @pytest.mark.parametrize("name", ["", "..", "a/b", "a\\b"])
    def test_path_like_names_rejected(self, name):
        with pytest.raises((ValidationError, InputError)):
            ConvertParams(name=name)

    def test_roundtrip(self):
        p = ConvertParams(name="part", with_indices=False)
        p2 = ConvertParams(**p.model_dump())
        assert p2.name == "part"
        assert p2.with_indices is False


class TestResponses:
    def test_convert_response(self):
        r = ConvertResponse(output_id="stl2gltf_x", output_dir="/tmp/stl2gltf_x",
                            files=["a.gltf", "a.bin"],
                            vertex_count=3, triangle_count=1)
        assert r.model_dump()["files"] == ["a.gltf", "a.bin"]

    def test_error_response(self):
        r = ErrorResponse(error_type="InputError", message="bad")
        assert r.detail is None


class TestSettings:
    def test_defaults(self, settings):
        assert settings.port == 8000
        assert settings.strict_indices is False
        assert settings.generator == "stl2gltf"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("STL2GLTF_STRICT_INDICES", "true")
        monkeypatch.setenv("STL2GLTF_PORT", "9000")
        s = Settings()
        assert s.strict_indices is True
        assert s.port == 9000

    def test_output_root_default_and_env(self, settings, monkeypatch, tmp_path):
        assert settings.output_root is None
        monkeypatch.setenv("STL2GLTF_OUTPUT_ROOT", str(tmp_path))
        assert Settings().output_root == tmp_path
