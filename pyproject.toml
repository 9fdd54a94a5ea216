[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tcpchat"
version = "0.1.0"
description = "A small asyncio TCP chat server and client with a user whitelist and broadcast messaging"
requires-python = ">=3.10"
dependencies = []
keywords = ["chat", "tcp", "asyncio", "broadcast", "server", "client"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
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
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[project.scripts]
tcpchat-server = "tcpchat.server:main"
tcpchat-client = "tcpchat.client:main"

[tool.hatch.build.targets.wheel]
packages = ["tcpchat"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
