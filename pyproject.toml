[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cotwire"
version = "0.0.1"
description = "Cursor-on-Target codec: CoT XML, TAK Protocol v1 framing, and a mock client for wire conformance checks."
requires-python = ">=3.11"
dependencies = []
keywords = [
    "cot",
    "cursor-on-target",
    "tak",
    "atak",
    "framing",
    "varint",
    "xml",
    "situational-awareness",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Topic :: Software Development :: Testing",
    "Topic :: Text Processing :: Markup :: XML",
    "Framework :: AsyncIO",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
    "hypothesis",
]

[tool.hatch.build.targets.wheel]
packages = ["cotwire"]

[tool.hatch.build.targets.sdist]
include = ["cotwire", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP", "SIM"]

[tool.mypy]
python_version = "3.11"
strict = true
files = ["cotwire"]
