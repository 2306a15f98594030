[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vpcblock"
version = "0.1.0"
description = "Block storage volume, snapshot and attachment operations for a VPC cloud backend"
requires-python = ">=3.10"
dependencies = []
keywords = ["vpc", "block-storage", "volumes", "snapshots", "attachments", "cloud"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["vpcblock"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
