[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "skillkeeper"
version = "0.1.0"
description = "Manage local AI agent skills: install, enable, link into agent apps and browse a store index over a JSON HTTP API."
requires-python = ">=3.10"
dependencies = [
    "bottle",
]
keywords = ["skills", "agents", "symlinks", "manifest", "ai"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
skillkeeper = "skillkeeper.api:main"

[tool.setuptools.packages.find]
include = ["skillkeeper*"]

[tool.pytest.ini_options]
addopts = "-ra"
