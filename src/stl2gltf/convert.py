"""STL to glTF conversion: one mesh, one node, one default scene."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import numpy as np

from stl2gltf.geometry.mesh import IndexedMesh
from stl2gltf.geometry.normals import bounding_coords, compute_normals, has_bounds
from stl2gltf.gltf.builder import GltfBuilder
from stl2gltf.gltf.model import ELEMENT_ARRAY_BUFFER, TRIANGLES, Attributes, Primitive

logger = logging.getLogger(__name__)

BoundsHook = Callable[[list[float], list[float]], None]


def convert_stl_to_gltf(
    mesh: IndexedMesh,
    input_filename: str | Path,
    *,
    with_indices: bool = True,
    strict: bool = False,
    on_bounds: BoundsHook | None = None,
    generator: str | None = "stl2gltf",
) -> GltfBuilder:
    """Build a glTF document holding ``mesh`` as a single indexed primitive.

    The mesh and its node are named after the stem of ``input_filename``.
    ``on_bounds`` is called with the position bounds once they are known.
    """
    mesh_name = Path(input_filename).stem
    gltf = GltfBuilder(strict=strict, generator=generator)

    positions = np.asarray(mesh.vertices, dtype=np.float32)
    normals = compute_normals(positions, mesh.faces, mesh.face_normals)
    bounds_min, bounds_max = bounding_coords(positions)
    logger.debug("%s bounds: min=%s max=%s", mesh_name, bounds_min, bounds_max)
    if on_bounds is not None:
        on_bounds(bounds_min, bounds_max)
    vcount = len(positions)

    positions_view = gltf.push_buffer_with_view("positions", positions)
    normals_view = gltf.push_buffer_with_view("normals", normals)

    if has_bounds(bounds_min, bounds_max):
        position_accessor = gltf.push_accessor_vec3(
            "positions", positions_view, 0, vcount, bounds_min, bounds_max
        )
    else:
        position_accessor = gltf.push_accessor_vec3(
            "positions", positions_view, 0, vcount
        )
    normal_accessor = gltf.push_accessor_vec3("normals", normals_view, 0, vcount)

    indices = np.asarray(mesh.faces, dtype=np.uint32).reshape(-1)
    indices_view = gltf.push_buffer_with_view(
        "indices", indices, target=ELEMENT_ARRAY_BUFFER
    )
    index_accessor = None
    if with_indices:
        index_accessor = gltf.push_accessor_u32(
            "indices", indices_view, 0, len(indices)
        )

    primitive = Primitive(
        attributes=Attributes(POSITION=position_accessor, NORMAL=normal_accessor),
        indices=index_accessor,
        mode=TRIANGLES,
    )
    mesh_index = gltf.push_mesh(mesh_name, [primitive])
    node = gltf.push_node(mesh_name, mesh_index)
    scene = gltf.push_scene([node])
    gltf.set_default_scene(scene)

    logger.info(
        "Converted %s: %d vertices, %d triangles",
        mesh_name, vcount, mesh.triangle_count,
    )
    return gltf
