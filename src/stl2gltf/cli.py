"""Command line entry point.

Usage:
    stl2gltf model.stl                  # writes model.glb
    stl2gltf model.stl -f gltf          # writes model.gltf + model.bin
    stl2gltf model.stl -o out/part.glb --strict -v
"""

from __future__ import annotations

import argparse
import logging
import sys

from stl2gltf.config import FileFormat
from stl2gltf.errors import InputError, Stl2GltfError
from stl2gltf.export.writers import convert_file
from stl2gltf.settings import Settings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stl2gltf", description="Convert an STL mesh to glTF 2.0"
    )
    parser.add_argument("input", help="Path to the input .stl file")
    parser.add_argument(
        "-f", "--format",
        default=FileFormat.GLB.value,
        choices=[f.value for f in FileFormat],
        help="Output format (default: glb)",
    )
    parser.add_argument(
        "-o", "--output",
        help="Output path (default: input path with the format's extension)",
    )
    parser.add_argument(
        "--no-indices", action="store_true",
        help="Omit the index accessor from the primitive",
    )
    parser.add_argument(
        "--strict", action="store_true",
        help="Check cross references on every push instead of at export",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings()

    level = logging.DEBUG if args.verbose else settings.log_level.upper()
    logging.getLogger("stl2gltf").setLevel(level)

    try:
        files = convert_file(
            args.input,
            args.output,
            FileFormat(args.format),
            with_indices=not args.no_indices,
            strict=args.strict or settings.strict_indices,
        )
    except InputError as exc:
        logger.error("Invalid input: %s", exc)
        return 2
    except Stl2GltfError as exc:
        logger.error("Conversion failed (%s): %s", type(exc).__name__, exc)
        return 1

    for path in files:
        print(f"Output: {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
