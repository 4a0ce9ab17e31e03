"""Tools for GoldSrc-era game data: BSP maps, WADs, PAKs, images, triangles and geometry."""

__version__ = "0.1.0"