"""Tests for the file writers and convert_file."""

import json

import pytest
import trimesh

from stl2gltf.config import FileFormat
from stl2gltf.convert import convert_stl_to_gltf
from stl2gltf.errors import ExportError, InputError, StructuralError
from stl2gltf.export.writers import (
    convert_file,
    default_output_path,
    write_glb,
    write_gltf,
)
from stl2gltf.gltf.builder import GltfBuilder
from stl2gltf.gltf.glb import read_glb


class TestWriteGlb:
    def test_writes_file(self, tmp_path, triangle_mesh):
        out = tmp_path / "t.glb"
        files = write_glb(convert_stl_to_gltf(triangle_mesh, "t.stl"), out)
        assert files == ["t.glb"]
        data = out.read_bytes()
        parsed, _ = read_glb(data)
        assert parsed.scene == 0

    def test_nothing_written_on_structural_error(self, tmp_path):
        gltf = GltfBuilder()
        gltf.push_scene([0])
        with pytest.raises(StructuralError):
            write_glb(gltf, tmp_path / "bad.glb")
        assert not (tmp_path / "bad.glb").exists()


class TestWriteGltf:
    def test_writes_gltf_and_bin(self, tmp_path, triangle_mesh):
        out = tmp_path / "t.gltf"
        files = write_gltf(convert_stl_to_gltf(triangle_mesh, "t.stl"), out)
        assert files == ["t.gltf", "t.bin"]
        tree = json.loads(out.read_text())
        assert tree["buffers"][0]["uri"] == "t.bin"
        assert (tmp_path / "t.bin").stat().st_size == tree["buffers"][0]["byteLength"]

    def test_unwritable_directory(self, tmp_path, triangle_mesh):
        with pytest.raises(ExportError):
            write_gltf(
                convert_stl_to_gltf(triangle_mesh, "t.stl"),
                tmp_path / "missing" / "t.gltf",
            )

    def test_loads_in_trimesh(self, tmp_path, tetra_mesh):
        out = tmp_path / "tetra.gltf"
        write_gltf(convert_stl_to_gltf(tetra_mesh, "tetra.stl"), out)
        scene = trimesh.load(str(out))
        geometry = next(iter(scene.geometry.values()))
        assert len(geometry.faces) == 4


class TestConvertFile:
    def test_default_output_path(self, tmp_path):
        assert default_output_path(tmp_path / "a.stl", FileFormat.GLB) == tmp_path / "a.glb"
        assert default_output_path(tmp_path / "a.stl", "gltf") == tmp_path / "a.gltf"

    def test_glb(self, tetra_stl_file):
        files = convert_file(tetra_stl_file)
        assert files == [tetra_stl_file.with_suffix(".glb")]
        assert files[0].exists()

    def test_gltf(self, tetra_stl_file):
        files = convert_file(tetra_stl_file, file_format=FileFormat.GLTF)
        assert [f.name for f in files] == ["tetra.gltf", "tetra.bin"]
        assert all(f.exists() for f in files)

    def test_stl_to_other_path(self, tmp_path, tetra_stl_file):
        out = tmp_path / "copy.stl"
        files = convert_file(tetra_stl_file, out, FileFormat.STL)
        assert files == [out]
        reloaded = trimesh.load_mesh(str(out))
        assert len(reloaded.faces) == 4

    def test_refuses_to_overwrite_input(self, tetra_stl_file):
        with pytest.raises(InputError):
            convert_file(tetra_stl_file, file_format=FileFormat.STL)

    def test_missing_input(self, tmp_path):
        with pytest.raises(InputError):
            convert_file(tmp_path / "missing.stl")
