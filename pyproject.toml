[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hltools"
version = "0.1.0"
description = "Map, texture and asset tooling for GoldSrc-era game data: BSP, WAD, LBM/BMP, Alias triangles and geometry helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["bsp", "wad", "lbm", "bmp", "pak", "goldsrc", "map-compiler", "geometry"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Games/Entertainment",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["hltools"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
