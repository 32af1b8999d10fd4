"""Custom exception hierarchy for the STL to glTF converter."""


class Stl2GltfError(Exception):
    """Base exception for all converter errors."""


class InputError(Stl2GltfError):
    """Unreadable or malformed source mesh, or bad user input (maps to HTTP 400)."""


class StructuralError(Stl2GltfError):
    """Index, offset or range inconsistency in the glTF document (maps to HTTP 500)."""


class ExportError(Stl2GltfError):
    """Failure while writing output files or a missing buffer URI (maps to HTTP 500)."""
