[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "myml"
version = "0.1.0"
description = "A small tensor library with reverse-mode autograd, layers, networks and MNIST data loading"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["autograd", "tensor", "neural-network", "mlp", "cnn", "mnist", "sgd"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
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
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["myml"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
