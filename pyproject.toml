[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sensornet"
version = "0.1.0"
description = "A small TCP sensor network: servers that accept sensor clients and keep a single peer-to-peer link"
requires-python = ">=3.10"
dependencies = []
keywords = ["sockets", "tcp", "select", "peer-to-peer", "sensors"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
sensornet-server = "sensornet.server:main"
sensornet-sensor = "sensornet.sensor:main"

[tool.hatch.build.targets.wheel]
packages = ["sensornet"]

[tool.pytest.ini_options]
addopts = "-ra"
