[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "quantflow"
version = "0.1.0"
description = "Quantized neural-network inference operators for small models"
requires-python = ">=3.10"
dependencies = ["numpy"]
keywords = ["tinyml", "inference", "quantization", "neural-network", "int8"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["quantflow"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
