"""glTF 2.0 entity types and constants used by the converter.

The entities themselves are pygltflib's dataclasses. Entities reference
each other by position in the document's lists; the NewType aliases
below name which list an integer points into.
"""

from __future__ import annotations

from typing import NewType

import pygltflib
from pygltflib import (  # noqa: F401  re-exported entity types
    ARRAY_BUFFER,
    ELEMENT_ARRAY_BUFFER,
    FLOAT,
    GLTF2,
    SCALAR,
    TRIANGLES,
    UNSIGNED_INT,
    VEC3,
    Accessor,
    Asset,
    Attributes,
    Buffer,
    BufferView,
    Mesh,
    Node,
    Primitive,
    Scene,
)

BufferIndex = NewType("BufferIndex", int)
ViewIndex = NewType("ViewIndex", int)
AccessorIndex = NewType("AccessorIndex", int)
MeshIndex = NewType("MeshIndex", int)
NodeIndex = NewType("NodeIndex", int)
SceneIndex = NewType("SceneIndex", int)

COMPONENT_SIZES = {FLOAT: 4, UNSIGNED_INT: 4}
TYPE_COMPONENTS = {
    SCALAR: 1,
    pygltflib.VEC2: 2,
    VEC3: 3,
    pygltflib.VEC4: 4,
    pygltflib.MAT4: 16,
}


def element_size(accessor: Accessor) -> int:
    """Bytes occupied by one element of ``accessor``."""
    return COMPONENT_SIZES[accessor.componentType] * TYPE_COMPONENTS[accessor.type]


def primitive_attributes(primitive: Primitive) -> dict[str, int]:
    """The semantic -> accessor map of a primitive, unset semantics dropped."""
    return {
        semantic: accessor
        for semantic, accessor in vars(primitive.attributes).items()
        if accessor is not None and not semantic.startswith("_")
    }
