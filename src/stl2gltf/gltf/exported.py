"""The exported form of a glTF document: JSON text plus external .bin files."""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from stl2gltf.errors import ExportError
from stl2gltf.gltf.glb import pack_glb
from stl2gltf.gltf.model import GLTF2, Buffer, BufferIndex

logger = logging.getLogger(__name__)


class ExportedGltf:
    """A finished document whose buffers are written as separate files.

    Produced by GltfBuilder.merge_buffers(). The entity graph is fixed;
    only buffer URIs can still be assigned. ``buffer_data`` holds the
    bytes of each buffer, in buffer order.
    """

    def __init__(self, document: GLTF2, buffer_data: Sequence[bytes]) -> None:
        if len(buffer_data) != len(document.buffers):
            raise ExportError(
                f"{len(document.buffers)} buffers but {len(buffer_data)} payloads"
            )
        self._gltf = document
        self._data = [bytes(d) for d in buffer_data]

    @property
    def document(self) -> GLTF2:
        return copy.deepcopy(self._gltf)

    @property
    def buffers(self) -> tuple[Buffer, ...]:
        return tuple(self._gltf.buffers)

    @property
    def buffer_data(self) -> tuple[bytes, ...]:
        return tuple(self._data)

    def set_buffer_uri(self, index: BufferIndex, uri: str | None) -> None:
        """Point buffer ``index`` at an external file, relative to the .gltf."""
        if not 0 <= index < len(self._gltf.buffers):
            raise ExportError(
                f"buffer {index} does not exist ({len(self._gltf.buffers)} buffers)"
            )
        self._gltf.buffers[index].uri = uri

    def to_json(self) -> str:
        return self._gltf.gltf_to_json()

    def to_json_dict(self) -> dict:
        return json.loads(self.to_json())

    def to_glb(self) -> bytes:
        """Pack the document as GLB; the BIN chunk carries buffer 0."""
        if len(self._data) > 1:
            raise ExportError(
                f"GLB holds a single buffer, document has {len(self._data)}"
            )
        return pack_glb(self._gltf, self._data[0] if self._data else b"")

    def write_to_gltf(self, sink: TextIO) -> None:
        """Write the JSON document to a text stream."""
        sink.write(self.to_json())

    def write_all_buffers(self, directory: str | Path) -> list[Path]:
        """Write every buffer to ``directory / uri``.

        Files are written one after another; if one fails, the ones before
        it stay on disk.

        Returns:
            Paths of the files written, in buffer order.
        """
        directory = Path(directory)
        written: list[Path] = []
        for i, (buffer, data) in enumerate(zip(self._gltf.buffers, self._data)):
            if not buffer.uri:
                raise ExportError(f"buffer {i} has no URI")
            path = directory / buffer.uri
            try:
                path.write_bytes(data)
            except OSError as exc:
                raise ExportError(f"Unable to write buffer {i} to {path}: {exc}") from exc
            logger.info("Wrote %s (%d bytes)", path, len(data))
            written.append(path)
        return written
