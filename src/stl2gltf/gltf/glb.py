"""GLB container reading and writing through pygltflib.

A GLB is a 12-byte header, a JSON chunk and a BIN chunk. pygltflib pads
both chunks to 4-byte boundaries and fills in the header's total length.
"""

from __future__ import annotations

import copy

import numpy as np
import pygltflib

from stl2gltf.errors import StructuralError

GLB_MAGIC = 0x46546C67  # "glTF"
GLB_VERSION = 2
HEADER_SIZE = 12


def pad_to_4(data: bytes, fill: bytes = b"\x00") -> bytes:
    """Append ``fill`` bytes until len(data) is a multiple of 4."""
    remainder = len(data) % 4
    if remainder == 0:
        return data
    return data + fill * (4 - remainder)


def pack_glb(gltf: pygltflib.GLTF2, bin_data: bytes) -> bytes:
    """Pack a document and the payload of its single buffer into GLB bytes.

    ``gltf`` is not modified.
    """
    packed = copy.deepcopy(gltf)
    packed.set_binary_blob(bytes(bin_data))
    return b"".join(packed.save_to_bytes())


def read_glb(data: bytes) -> tuple[pygltflib.GLTF2, bytes]:
    """Parse GLB bytes into the document and its BIN payload.

    An asset without a BIN chunk returns empty bytes.
    """
    if len(data) < HEADER_SIZE:
        raise StructuralError(f"GLB too short: {len(data)} bytes")
    magic, version, length = np.frombuffer(data[:HEADER_SIZE], dtype="<u4")
    if magic != GLB_MAGIC:
        raise StructuralError("incorrect header on GLB data")
    if version != GLB_VERSION:
        raise StructuralError(f"only glTF 2 is supported, not {version}")
    if length != len(data):
        raise StructuralError(
            f"GLB header declares {length} bytes but {len(data)} were given"
        )

    try:
        gltf = pygltflib.GLTF2.load_from_bytes(bytes(data))
    except Exception as exc:
        raise StructuralError(f"Unable to parse GLB: {exc}") from exc
    return gltf, gltf.binary_blob() or b""
