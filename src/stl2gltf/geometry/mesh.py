"""Indexed triangle mesh value and STL reading via trimesh."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import trimesh
from trimesh.exchange.stl import load_stl as read_stl

from stl2gltf.errors import InputError

logger = logging.getLogger(__name__)


@dataclass
class IndexedMesh:
    """Vertex positions plus triangles that index into them.

    vertices: (N, 3) float32 positions.
    faces: (M, 3) vertex indices per triangle.
    face_normals: (M, 3) one normal per triangle, as stored in the source file.
    """

    vertices: np.ndarray
    faces: np.ndarray
    face_normals: np.ndarray

    def __post_init__(self) -> None:
        self.vertices = np.asarray(self.vertices, dtype=np.float32).reshape(-1, 3)
        self.faces = np.asarray(self.faces, dtype=np.int64).reshape(-1, 3)
        self.face_normals = np.asarray(self.face_normals, dtype=np.float32).reshape(-1, 3)

        if len(self.face_normals) != len(self.faces):
            raise InputError(
                f"{len(self.faces)} faces but {len(self.face_normals)} face normals"
            )
        if len(self.faces) and (
            self.faces.min() < 0 or self.faces.max() >= len(self.vertices)
        ):
            raise InputError(
                f"face references vertex outside 0..{len(self.vertices) - 1}"
            )

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def triangle_count(self) -> int:
        return len(self.faces)

    @classmethod
    def from_trimesh(cls, tmesh: trimesh.Trimesh) -> IndexedMesh:
        """Build from a trimesh.Trimesh, keeping its face normals."""
        return cls(
            vertices=np.array(tmesh.vertices, dtype=np.float32),
            faces=np.array(tmesh.faces, dtype=np.int64),
            face_normals=np.array(tmesh.face_normals, dtype=np.float32),
        )

    def to_trimesh(self) -> trimesh.Trimesh:
        """Convert to a trimesh.Trimesh without any processing."""
        return trimesh.Trimesh(
            vertices=np.array(self.vertices, dtype=np.float64),
            faces=np.array(self.faces, dtype=np.int64),
            face_normals=np.array(self.face_normals, dtype=np.float64),
            process=False,
        )


def _stl_solids(loaded: dict) -> list[dict]:
    # ASCII files with several solids come back keyed by solid name
    if "geometry" in loaded:
        return list(loaded["geometry"].values())
    return [loaded]


def parse_stl_bytes(data: bytes) -> IndexedMesh:
    """Parse binary or ASCII STL bytes into an IndexedMesh.

    The facet normals are taken exactly as written in the file, even when
    they disagree with the triangle winding. Facets without a stored
    normal (some ASCII writers omit them) get the winding normal instead.
    Coincident vertices are merged so that faces share vertex indices.
    """
    if not data:
        raise InputError("STL input is empty")
    try:
        solids = _stl_solids(read_stl(io.BytesIO(data)))
    except Exception as exc:
        raise InputError(f"Unable to parse STL: {exc}") from exc

    vertices, faces, stored = [], [], []
    offset = 0
    for solid in solids:
        solid_vertices = np.asarray(solid["vertices"], dtype=np.float64).reshape(-1, 3)
        solid_faces = np.asarray(solid["faces"], dtype=np.int64).reshape(-1, 3)
        vertices.append(solid_vertices)
        faces.append(solid_faces + offset)
        stored.append(solid.get("face_normals"))
        offset += len(solid_vertices)

    if sum(len(f) for f in faces) == 0:
        raise InputError("STL input contains no triangles")

    tmesh = trimesh.Trimesh(
        vertices=np.concatenate(vertices),
        faces=np.concatenate(faces),
        process=False,
    )
    # Start from the winding normals, then overwrite with the file's own.
    face_normals = np.array(tmesh.face_normals, dtype=np.float32)
    start = 0
    for solid_faces, normals in zip(faces, stored):
        end = start + len(solid_faces)
        if normals is not None and len(normals) == len(solid_faces):
            face_normals[start:end] = np.asarray(normals, dtype=np.float32).reshape(-1, 3)
        start = end

    # Merging keeps face order, so the stored normals stay aligned.
    tmesh.merge_vertices(merge_tex=True, merge_norm=True)
    mesh = IndexedMesh(
        vertices=np.array(tmesh.vertices, dtype=np.float32),
        faces=np.array(tmesh.faces, dtype=np.int64),
        face_normals=face_normals,
    )
    logger.info(
        "Parsed STL: %d vertices, %d triangles",
        mesh.vertex_count, mesh.triangle_count,
    )
    return mesh


def load_stl(path: str | Path) -> IndexedMesh:
    """Read and parse an STL file from disk."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise InputError(f"Unable to open {path}: {exc}") from exc
    return parse_stl_bytes(data)


def export_stl_bytes(mesh: IndexedMesh) -> bytes:
    """Export an IndexedMesh as binary STL bytes."""
    buffer = io.BytesIO()
    mesh.to_trimesh().export(buffer, file_type="stl")
    return buffer.getvalue()
