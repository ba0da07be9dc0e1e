[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "peerchat"
version = "0.1.0"
description = "Peer-to-peer chat core: JSON wire protocol, asyncio TCP peers, file transfer and chat sessions"
requires-python = ">=3.10"
dependencies = []
keywords = ["chat", "peer-to-peer", "tcp", "asyncio", "file-transfer", "json"]
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
    "Topic :: Communications :: Chat",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["peerchat"]

[tool.pytest.ini_options]
addopts = "-ra"
