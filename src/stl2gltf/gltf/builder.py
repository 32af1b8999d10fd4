"""Append-only builder for glTF documents.

GltfBuilder owns the document while it is being assembled. Every push
appends one entity and returns its index; later pushes refer to earlier
entities by those indices. Cross references are checked by validate(),
which runs before any serialization, or eagerly on every push when the
builder is strict.

The document is a pygltflib.GLTF2. pygltflib buffers carry no payload,
so the builder keeps the bytes of each buffer in a parallel list.
"""

from __future__ import annotations

import copy
import logging
import math
from collections.abc import Sequence
from typing import Any

import numpy as np

from stl2gltf.errors import InputError, StructuralError
from stl2gltf.gltf.exported import ExportedGltf
from stl2gltf.gltf.glb import pad_to_4
from stl2gltf.gltf.model import (
    ARRAY_BUFFER,
    COMPONENT_SIZES,
    FLOAT,
    GLTF2,
    SCALAR,
    TYPE_COMPONENTS,
    UNSIGNED_INT,
    VEC3,
    Accessor,
    AccessorIndex,
    Asset,
    Buffer,
    BufferView,
    Mesh,
    MeshIndex,
    Node,
    NodeIndex,
    Primitive,
    Scene,
    SceneIndex,
    ViewIndex,
    element_size,
    primitive_attributes,
)

logger = logging.getLogger(__name__)

_U32_MAX = 0xFFFFFFFF


def encode_array(data: Any) -> bytes:
    """Encode numeric data as little-endian float32 or uint32 bytes.

    Floating point input becomes float32; integer and boolean input
    becomes uint32 and must fit in 0..2**32-1.
    """
    array = np.asarray(data)
    if array.dtype.kind == "f":
        return np.ascontiguousarray(array, dtype="<f4").tobytes()
    if array.dtype.kind in "iub":
        if array.size and (array.min() < 0 or array.max() > _U32_MAX):
            raise InputError("integer data does not fit in uint32")
        return np.ascontiguousarray(array, dtype="<u4").tobytes()
    raise InputError(f"cannot encode array of dtype {array.dtype}")


# Structural checks. Each takes the document as it stands and the entity
# about to be (or already) stored at ``index``.

def _check_view(doc: GLTF2, index: int, view: BufferView) -> None:
    label = f"bufferView {index}"
    if view.buffer is None or not 0 <= view.buffer < len(doc.buffers):
        raise StructuralError(
            f"{label}: buffer {view.buffer} out of range ({len(doc.buffers)} buffers)"
        )
    offset = view.byteOffset or 0
    if offset < 0 or view.byteLength is None or view.byteLength < 0:
        raise StructuralError(f"{label}: negative offset or length")
    buffer_length = doc.buffers[view.buffer].byteLength
    if offset + view.byteLength > buffer_length:
        raise StructuralError(
            f"{label}: range {offset}+{view.byteLength} exceeds "
            f"buffer {view.buffer} length {buffer_length}"
        )
    if view.byteStride is not None and (
        view.byteStride % 4 or not 4 <= view.byteStride <= 252
    ):
        raise StructuralError(f"{label}: invalid byteStride {view.byteStride}")


def _check_accessor(doc: GLTF2, index: int, accessor: Accessor) -> None:
    label = f"accessor {index}"
    if accessor.bufferView is None or not 0 <= accessor.bufferView < len(doc.bufferViews):
        raise StructuralError(
            f"{label}: bufferView {accessor.bufferView} out of range "
            f"({len(doc.bufferViews)} views)"
        )
    if accessor.componentType not in COMPONENT_SIZES:
        raise StructuralError(
            f"{label}: unsupported componentType {accessor.componentType}"
        )
    if accessor.type not in TYPE_COMPONENTS:
        raise StructuralError(f"{label}: unknown type {accessor.type!r}")
    byte_offset = accessor.byteOffset or 0
    if byte_offset < 0 or accessor.count is None or accessor.count < 0:
        raise StructuralError(f"{label}: negative byteOffset or count")

    view = doc.bufferViews[accessor.bufferView]
    component_size = COMPONENT_SIZES[accessor.componentType]
    size = element_size(accessor)
    if accessor.count:
        stride = view.byteStride or size
        end = byte_offset + stride * (accessor.count - 1) + size
    else:
        end = byte_offset
    if end > view.byteLength:
        raise StructuralError(
            f"{label}: needs {end} bytes but bufferView {accessor.bufferView} "
            f"has {view.byteLength}"
        )
    if (view.byteOffset or 0) % 4:
        raise StructuralError(
            f"{label}: bufferView {accessor.bufferView} offset "
            f"{view.byteOffset} is not 4-byte aligned"
        )
    if byte_offset % component_size:
        raise StructuralError(
            f"{label}: byteOffset {byte_offset} is not a multiple "
            f"of {component_size}"
        )

    components = TYPE_COMPONENTS[accessor.type]
    for bound_name, bound in (("min", accessor.min), ("max", accessor.max)):
        if not bound:
            continue
        if len(bound) != components:
            raise StructuralError(
                f"{label}: {bound_name} has {len(bound)} values, expected {components}"
            )
        # JSON has no spelling for inf or nan
        if not all(math.isfinite(v) for v in bound):
            raise StructuralError(f"{label}: {bound_name} is not finite: {bound}")


def _check_mesh(doc: GLTF2, index: int, mesh: Mesh) -> None:
    accessor_count = len(doc.accessors)
    for p, primitive in enumerate(mesh.primitives):
        label = f"mesh {index} primitive {p}"
        for semantic, accessor in primitive_attributes(primitive).items():
            if not 0 <= accessor < accessor_count:
                raise StructuralError(
                    f"{label}: {semantic} accessor {accessor} out of range "
                    f"({accessor_count} accessors)"
                )
        if primitive.indices is not None and not 0 <= primitive.indices < accessor_count:
            raise StructuralError(
                f"{label}: indices accessor {primitive.indices} out of range "
                f"({accessor_count} accessors)"
            )


def _check_node(doc: GLTF2, index: int, node: Node) -> None:
    label = f"node {index}"
    if node.mesh is not None and not 0 <= node.mesh < len(doc.meshes):
        raise StructuralError(
            f"{label}: mesh {node.mesh} out of range ({len(doc.meshes)} meshes)"
        )
    if node.matrix is not None and len(node.matrix) != 16:
        raise StructuralError(f"{label}: matrix has {len(node.matrix)} values, expected 16")
    # Children may be pushed after their parent, so only the final
    # document can be checked for range.
    for child in node.children or []:
        if child == index or child < 0:
            raise StructuralError(f"{label}: invalid child {child}")


def _check_node_children(doc: GLTF2, index: int, node: Node) -> None:
    for child in node.children or []:
        if child >= len(doc.nodes):
            raise StructuralError(
                f"node {index}: child {child} out of range ({len(doc.nodes)} nodes)"
            )


def _check_scene(doc: GLTF2, index: int, scene: Scene) -> None:
    for node in scene.nodes or []:
        if not 0 <= node < len(doc.nodes):
            raise StructuralError(
                f"scene {index}: node {node} out of range ({len(doc.nodes)} nodes)"
            )


def _check_default_scene(doc: GLTF2, scene: int | None) -> None:
    if scene is not None and not 0 <= scene < len(doc.scenes):
        raise StructuralError(
            f"default scene {scene} out of range ({len(doc.scenes)} scenes)"
        )


def validate_document(doc: GLTF2) -> None:
    """Check every cross reference, byte range and alignment in ``doc``.

    Raises:
        StructuralError: naming the first offending entity.
    """
    for i, view in enumerate(doc.bufferViews):
        _check_view(doc, i, view)
    for i, accessor in enumerate(doc.accessors):
        _check_accessor(doc, i, accessor)
    for i, mesh in enumerate(doc.meshes):
        _check_mesh(doc, i, mesh)
    for i, node in enumerate(doc.nodes):
        _check_node(doc, i, node)
        _check_node_children(doc, i, node)
    for i, scene in enumerate(doc.scenes):
        _check_scene(doc, i, scene)
    _check_default_scene(doc, doc.scene)


class GltfBuilder:
    """Incrementally assemble a glTF document from numeric arrays.

    With ``strict=True`` each push checks its references against the
    document built so far and raises StructuralError before appending.
    Otherwise problems surface when the document is serialized.
    """

    def __init__(self, strict: bool = False, generator: str | None = "stl2gltf") -> None:
        self.strict = strict
        self._gltf = GLTF2(asset=Asset(generator=generator, version="2.0"))
        self._data: list[bytes] = []

    # Read-only views of the document under construction

    @property
    def buffers(self) -> tuple[Buffer, ...]:
        return tuple(self._gltf.buffers)

    @property
    def buffer_data(self) -> tuple[bytes, ...]:
        """Payload of each buffer, in buffer order."""
        return tuple(self._data)

    @property
    def buffer_views(self) -> tuple[BufferView, ...]:
        return tuple(self._gltf.bufferViews)

    @property
    def accessors(self) -> tuple[Accessor, ...]:
        return tuple(self._gltf.accessors)

    @property
    def meshes(self) -> tuple[Mesh, ...]:
        return tuple(self._gltf.meshes)

    @property
    def nodes(self) -> tuple[Node, ...]:
        return tuple(self._gltf.nodes)

    @property
    def scenes(self) -> tuple[Scene, ...]:
        return tuple(self._gltf.scenes)

    @property
    def default_scene(self) -> SceneIndex | None:
        return self._gltf.scene

    def document(self) -> GLTF2:
        """A deep copy of the document in builder form."""
        return copy.deepcopy(self._gltf)

    # Pushes

    def push_buffer_with_view(
        self,
        name: str | None,
        data: Any,
        target: int | None = None,
        byte_stride: int | None = None,
    ) -> ViewIndex:
        """Store ``data`` in a new buffer and return a view spanning all of it.

        ``target`` defaults to ARRAY_BUFFER (vertex attributes); pass
        ELEMENT_ARRAY_BUFFER for index data.
        """
        raw = encode_array(data)
        buffer_index = len(self._gltf.buffers)
        view = BufferView(
            buffer=buffer_index,
            byteOffset=0,
            byteLength=len(raw),
            byteStride=byte_stride,
            target=ARRAY_BUFFER if target is None else target,
            name=name,
        )
        self._gltf.buffers.append(Buffer(byteLength=len(raw)))
        self._data.append(raw)
        if self.strict:
            try:
                _check_view(self._gltf, len(self._gltf.bufferViews), view)
            except StructuralError:
                self._gltf.buffers.pop()
                self._data.pop()
                raise
        self._gltf.bufferViews.append(view)
        logger.debug("Pushed buffer %d (%d bytes) %r", buffer_index, len(raw), name)
        return ViewIndex(len(self._gltf.bufferViews) - 1)

    def push_accessor_vec3(
        self,
        name: str | None,
        view: ViewIndex,
        byte_offset: int,
        count: int,
        min: Sequence[float] | None = None,
        max: Sequence[float] | None = None,
    ) -> AccessorIndex:
        """Append a float VEC3 accessor; ``min``/``max`` are stored as given."""
        accessor = Accessor(
            bufferView=view,
            byteOffset=byte_offset,
            componentType=FLOAT,
            count=count,
            type=VEC3,
            min=None if min is None else [float(v) for v in min],
            max=None if max is None else [float(v) for v in max],
            name=name,
        )
        return self._push_accessor(accessor)

    def push_accessor_u32(
        self, name: str | None, view: ViewIndex, byte_offset: int, count: int
    ) -> AccessorIndex:
        """Append a scalar uint32 accessor, as used for triangle indices."""
        accessor = Accessor(
            bufferView=view,
            byteOffset=byte_offset,
            componentType=UNSIGNED_INT,
            count=count,
            type=SCALAR,
            min=None,
            max=None,
            name=name,
        )
        return self._push_accessor(accessor)

    def _push_accessor(self, accessor: Accessor) -> AccessorIndex:
        index = len(self._gltf.accessors)
        if self.strict:
            _check_accessor(self._gltf, index, accessor)
        self._gltf.accessors.append(accessor)
        logger.debug("Pushed accessor %d %r", index, accessor.name)
        return AccessorIndex(index)

    def push_mesh(
        self,
        name: str | None,
        primitives: Sequence[Primitive],
        weights: Sequence[float] | None = None,
    ) -> MeshIndex:
        mesh = Mesh(
            primitives=[copy.deepcopy(p) for p in primitives],
            name=name,
            weights=None if weights is None else [float(w) for w in weights],
        )
        index = len(self._gltf.meshes)
        if self.strict:
            _check_mesh(self._gltf, index, mesh)
        self._gltf.meshes.append(mesh)
        return MeshIndex(index)

    def push_node(
        self,
        name: str | None,
        mesh: MeshIndex | None = None,
        matrix: Sequence[float] | None = None,
        children: Sequence[NodeIndex] | None = None,
    ) -> NodeIndex:
        node = Node(
            mesh=mesh,
            name=name,
            matrix=None if matrix is None else [float(v) for v in matrix],
            children=[] if children is None else list(children),
        )
        index = len(self._gltf.nodes)
        if self.strict:
            _check_node(self._gltf, index, node)
        self._gltf.nodes.append(node)
        return NodeIndex(index)

    def push_scene(
        self, nodes: Sequence[NodeIndex], name: str | None = None
    ) -> SceneIndex:
        scene = Scene(nodes=list(nodes), name=name)
        index = len(self._gltf.scenes)
        if self.strict:
            _check_scene(self._gltf, index, scene)
        self._gltf.scenes.append(scene)
        return SceneIndex(index)

    def set_default_scene(self, scene: SceneIndex | None) -> None:
        if self.strict:
            _check_default_scene(self._gltf, scene)
        self._gltf.scene = scene

    # Serialization

    def validate(self) -> None:
        """Raise StructuralError if any reference or byte range is invalid."""
        validate_document(self._gltf)

    def merge_buffers(self) -> ExportedGltf:
        """Concatenate all buffers into one and rebase every view onto it.

        Each buffer starts on a 4-byte boundary inside the merged buffer, so
        views keep their alignment. The builder itself is left unchanged.
        """
        self.validate()
        gltf = self.document()

        blob = b""
        offsets = []
        for data in self._data:
            blob = pad_to_4(blob)
            offsets.append(len(blob))
            blob += data

        for view in gltf.bufferViews:
            view.byteOffset = (view.byteOffset or 0) + offsets[view.buffer]
            view.buffer = 0

        if offsets:
            gltf.buffers = [Buffer(byteLength=len(blob))]
            payloads = [blob]
        else:
            gltf.buffers = []
            payloads = []
        logger.info(
            "Merged %d buffers into one of %d bytes", len(offsets), len(blob)
        )
        return ExportedGltf(gltf, payloads)

    def to_glb(self) -> bytes:
        """Serialize the whole document as a single GLB package.

        A GLB's BIN chunk backs exactly one buffer, so the package holds the
        merged form: one buffer without a URI and every view rebased into
        it. Views, accessors, meshes, nodes and scenes keep their indices.
        """
        glb = self.merge_buffers().to_glb()
        logger.info("Packed GLB: %d bytes", len(glb))
        return glb
