[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lantern-structure"
version = "0.1.0"
description = "Control-flow structuring and post-structuring pattern passes for a Luau decompiler's high-level IR"
requires-python = ">=3.10"
dependencies = []
keywords = ["decompiler", "luau", "control-flow", "structuring", "post-dominator", "cfg"]
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
    "Topic :: Software Development :: Disassemblers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["lantern_structure"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
