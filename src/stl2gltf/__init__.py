"""Convert STL surface meshes to glTF 2.0 assets (.glb or .gltf + .bin)."""

import logging

logger = logging.getLogger(__name__)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
