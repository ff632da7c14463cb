[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gemflow"
version = "0.1.0"
description = "Composable async workflow steps, tracing, interactive sessions, tool registries and JSON schema helpers for structured model output"
requires-python = ">=3.10"
dependencies = [
    "jsonschema",
]
keywords = ["workflow", "pipeline", "asyncio", "json-schema", "json-patch", "structured-output", "tools"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Framework :: AsyncIO",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["gemflow"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
