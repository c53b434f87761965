[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "chariott_apps"
version = "0.1.0"
description = "Building blocks for Chariott intent applications: typed values, inspection entries, an observable key-value store, a client interface and dog mode logic."
requires-python = ">=3.10"
dependencies = []
keywords = ["chariott", "intents", "software-defined-vehicle", "key-value", "dog-mode"]
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
    "Framework :: AsyncIO",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["chariott_apps"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
