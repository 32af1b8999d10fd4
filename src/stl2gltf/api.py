"""FastAPI application exposing STL to glTF conversion."""

import json
import logging
import shutil
import tempfile
from pathlib import Path

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from stl2gltf.config import ConvertParams, ConvertResponse, ErrorResponse
from stl2gltf.convert import convert_stl_to_gltf
from stl2gltf.errors import InputError, Stl2GltfError
from stl2gltf.export.writers import write_gltf
from stl2gltf.geometry.mesh import IndexedMesh, parse_stl_bytes
from stl2gltf.settings import Settings

logger = logging.getLogger(__name__)

# Create app
app = FastAPI(title="STL to glTF Converter", version="0.1.0")

# Settings
settings = Settings()

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error handlers
@app.exception_handler(InputError)
async def input_error_handler(request: Request, exc: InputError):
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            error_type="InputError",
            message=str(exc),
        ).model_dump(),
    )


@app.exception_handler(Stl2GltfError)
async def general_error_handler(request: Request, exc: Stl2GltfError):
    logger.exception("Conversion error")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error_type=type(exc).__name__,
            message=str(exc),
        ).model_dump(),
    )


# Dependency injection
def get_settings() -> Settings:
    """Provide the settings instance. Overridable in tests."""
    return settings


OUTPUT_PREFIX = "stl2gltf_"


def output_root(config: Settings) -> Path:
    """Directory under which /convert/gltf creates its output directories."""
    if config.output_root is None:
        return Path(tempfile.gettempdir())
    return Path(config.output_root)


def get_params(
    name: str = Query(default="model", description="Mesh, node and file stem"),
    with_indices: bool = Query(default=True),
    strict: bool = Query(default=False),
) -> ConvertParams:
    return ConvertParams(name=name, with_indices=with_indices, strict=strict)


async def read_mesh(request: Request, config: Settings) -> IndexedMesh:
    """Parse the request body as STL, enforcing the upload limit."""
    body = await request.body()
    if len(body) > config.max_upload_bytes:
        raise InputError(
            f"Upload of {len(body)} bytes exceeds limit of {config.max_upload_bytes}"
        )
    return await run_in_threadpool(parse_stl_bytes, body)


def _metadata(mesh: IndexedMesh, params: ConvertParams) -> str:
    return json.dumps({
        "name": params.name,
        "vertex_count": mesh.vertex_count,
        "triangle_count": mesh.triangle_count,
    })


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


@app.post("/convert/glb")
async def convert_glb(
    request: Request,
    params: ConvertParams = Depends(get_params),
    config: Settings = Depends(get_settings),
):
    """Convert an STL request body and return a binary GLB."""
    mesh = await read_mesh(request, config)

    def build() -> bytes:
        gltf = convert_stl_to_gltf(
            mesh,
            params.name,
            with_indices=params.with_indices,
            strict=params.strict or config.strict_indices,
            generator=config.generator,
        )
        return gltf.to_glb()

    glb_bytes = await run_in_threadpool(build)
    return Response(
        content=glb_bytes,
        media_type="model/gltf-binary",
        headers={
            "Content-Disposition": f'attachment; filename="{params.name}.glb"',
            "X-Convert-Metadata": _metadata(mesh, params),
        },
    )


@app.post("/convert/gltf")
async def convert_gltf(
    request: Request,
    params: ConvertParams = Depends(get_params),
    config: Settings = Depends(get_settings),
):
    """Convert an STL request body to .gltf + .bin in a fresh directory.

    The directory is created under the configured output root and is not
    removed by the service: the caller owns it and releases it with
    DELETE /outputs/{output_id} once the files have been collected.
    """
    mesh = await read_mesh(request, config)

    def build() -> tuple[str, list[str]]:
        gltf = convert_stl_to_gltf(
            mesh,
            params.name,
            with_indices=params.with_indices,
            strict=params.strict or config.strict_indices,
            generator=config.generator,
        )
        root = output_root(config)
        root.mkdir(parents=True, exist_ok=True)
        output_dir = tempfile.mkdtemp(prefix=OUTPUT_PREFIX, dir=root)
        files = write_gltf(gltf, Path(output_dir) / f"{params.name}.gltf")
        return output_dir, files

    output_dir, files = await run_in_threadpool(build)
    return ConvertResponse(
        output_id=Path(output_dir).name,
        output_dir=output_dir,
        files=files,
        vertex_count=mesh.vertex_count,
        triangle_count=mesh.triangle_count,
    ).model_dump()


@app.delete("/outputs/{output_id}")
async def delete_output(output_id: str, config: Settings = Depends(get_settings)):
    """Remove a directory written by /convert/gltf."""
    if not output_id.startswith(OUTPUT_PREFIX) or "/" in output_id or "\\" in output_id:
        raise InputError(f"'{output_id}' is not an output id")
    path = output_root(config) / output_id
    if not path.is_dir():
        return JSONResponse(
            status_code=404,
            content=ErrorResponse(
                error_type="NotFound",
                message=f"No output '{output_id}'",
            ).model_dump(),
        )
    await run_in_threadpool(shutil.rmtree, path)
    logger.info("Removed output directory %s", path)
    return {"status": "deleted", "output_id": output_id}
