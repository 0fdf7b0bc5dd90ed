[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bulletin-tcp"
version = "0.1.0"
description = "A small TCP bulletin service: log in with a username, post articles, log out."
requires-python = ">=3.10"
dependencies = []
keywords = ["tcp", "socket", "bulletin", "chat", "select", "threads"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
bulletin-tcp-server = "bulletin_tcp.server:main"
bulletin-tcp-client = "bulletin_tcp.client:main"

[tool.hatch.build.targets.wheel]
packages = ["bulletin_tcp"]

[tool.pytest.ini_options]
addopts = "-ra"
