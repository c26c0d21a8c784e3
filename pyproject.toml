[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pcms"
version = "0.1.0"
description = "Field coupling tools: reverse classification, array masks, message layouts, point search and field transfer on triangle meshes"
requires-python = ">=3.10"
keywords = ["coupling", "mesh", "field transfer", "interpolation", "plasma"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Physics",
]
dependencies = ["numpy"]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pcms"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
