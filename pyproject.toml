[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "limitgraph"
version = "2.4.1"
description = "Agent sessions under a governance policy, with provenance storage, rate-distortion analysis and multi-intent question answering"
requires-python = ">=3.10"
keywords = [
    "orchestration",
    "governance",
    "provenance",
    "rate-distortion",
    "question-answering",
    "multi-intent",
    "agents",
]
classifiers = [
    "Development Status :: 3 - Alpha",
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
dependencies = [
    "starlette",
    "uvicorn",
]

[project.optional-dependencies]
test = [
    "pytest",
    "httpx",
]

[project.scripts]
muisqa-demo = "limitgraph.muisqa.demo:main"
limitgraph-api = "limitgraph.api:main"

[tool.hatch.build.targets.wheel]
packages = ["limitgraph"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
