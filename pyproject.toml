[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "quakelog"
version = "1.0.0"
description = "Parse Quake 3 Arena server logs into per-game reports and serve them over an HTTP API backed by MongoDB."
requires-python = ">=3.10"
keywords = ["quake", "quake3", "log", "parser", "statistics", "mongodb", "api"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Log Analysis",
    "Topic :: Games/Entertainment :: First Person Shooters",
]
dependencies = [
    "flask",
    "pymongo",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
quakelog = "quakelog.api:main"

[tool.hatch.build.targets.wheel]
packages = ["quakelog"]

[tool.pytest.ini_options]
addopts = "-ra"
