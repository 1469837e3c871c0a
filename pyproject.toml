[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "thera"
version = "0.1.0"
description = "Events, framed packets, TCP/UDP connections and input bindings, with a networked two-player Pong server and client state."
requires-python = ">=3.10"
dependencies = []
keywords = ["pong", "game", "networking", "packets", "tcp", "udp", "input", "events"]
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
    "Topic :: Games/Entertainment :: Arcade",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
thera-pong-server = "thera.pong_server:main"

[tool.hatch.build.targets.wheel]
packages = ["thera"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
