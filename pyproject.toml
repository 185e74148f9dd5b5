[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "atlaskit"
version = "2.0.0"
description = "Helpers for database-backed services: SQL fragments from models, field selection, field masks, transactions, resource identifiers, health checks and integration test utilities."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "sql",
    "dataclasses",
    "field-mask",
    "full-text-search",
    "transactions",
    "health-checks",
    "resource-identifiers",
    "migrations",
    "integration-testing",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
    "Topic :: Database",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
    "Topic :: Software Development :: Testing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["atlaskit"]

[tool.hatch.build.targets.sdist]
include = ["atlaskit", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
