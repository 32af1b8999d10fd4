"""Write converted meshes to .glb, .gltf + .bin or .stl files."""

from __future__ import annotations

import logging
from pathlib import Path

from stl2gltf.config import FileFormat, get_extension
from stl2gltf.convert import convert_stl_to_gltf
from stl2gltf.errors import ExportError, InputError
from stl2gltf.geometry.mesh import IndexedMesh, export_stl_bytes, load_stl
from stl2gltf.gltf.builder import GltfBuilder

logger = logging.getLogger(__name__)


def _write_bytes(path: Path, data: bytes) -> None:
    try:
        path.write_bytes(data)
    except OSError as exc:
        raise ExportError(f"Unable to write {path}: {exc}") from exc
    logger.info("Wrote %s (%d bytes)", path, len(data))


def write_glb(gltf: GltfBuilder, output_path: str | Path) -> list[str]:
    """Write a single-file GLB.

    The package is built in memory first, so nothing is written when the
    document is inconsistent.
    """
    out = Path(output_path)
    glb = gltf.to_glb()
    _write_bytes(out, glb)
    return [out.name]


def write_gltf(gltf: GltfBuilder, output_path: str | Path) -> list[str]:
    """Write ``<stem>.gltf`` and its merged buffer as ``<stem>.bin`` beside it.

    Returns:
        Names of the created files (relative to the output directory).
    """
    out = Path(output_path)
    exported = gltf.merge_buffers()
    bin_name = f"{out.stem}.bin"
    exported.set_buffer_uri(0, bin_name)

    try:
        with out.open("w", encoding="utf-8") as sink:
            exported.write_to_gltf(sink)
    except OSError as exc:
        raise ExportError(f"Unable to write {out}: {exc}") from exc
    logger.info("Wrote %s", out)

    written = exported.write_all_buffers(out.parent)
    return [out.name] + [p.name for p in written]


def write_stl(mesh: IndexedMesh, output_path: str | Path) -> list[str]:
    """Re-export the parsed mesh as binary STL."""
    out = Path(output_path)
    _write_bytes(out, export_stl_bytes(mesh))
    return [out.name]


def default_output_path(input_path: str | Path, file_format: FileFormat) -> Path:
    """Input path with the extension of ``file_format``."""
    return Path(input_path).with_suffix("." + get_extension(file_format))


def convert_file(
    input_path: str | Path,
    output_path: str | Path | None = None,
    file_format: FileFormat = FileFormat.GLB,
    *,
    with_indices: bool = True,
    strict: bool = False,
) -> list[Path]:
    """Read an STL file and write it in ``file_format``.

    Returns:
        Paths of all files written.
    """
    input_path = Path(input_path)
    file_format = FileFormat(file_format)
    out = Path(output_path) if output_path else default_output_path(input_path, file_format)
    if out.resolve() == input_path.resolve():
        raise InputError(f"Output {out} would overwrite the input file")

    mesh = load_stl(input_path)
    if file_format is FileFormat.STL:
        files = write_stl(mesh, out)
    else:
        gltf = convert_stl_to_gltf(
            mesh, input_path, with_indices=with_indices, strict=strict
        )
        if file_format is FileFormat.GLB:
            files = write_glb(gltf, out)
        else:
            files = write_gltf(gltf, out)
    return [out.parent / name for name in files]
