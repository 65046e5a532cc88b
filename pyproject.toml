[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mugenkit"
version = "0.1.0"
description = "Readers for fighting-game character and stage data: definition, animation, command, stage and sprite archive files"
requires-python = ">=3.10"
dependencies = []
keywords = ["mugen", "fighting-game", "sff", "sprites", "animation", "air", "stage"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["mugenkit"]

[tool.hatch.build.targets.sdist]
include = ["mugenkit", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_redundant_casts = true
