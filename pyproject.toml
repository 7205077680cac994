[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "spongenet"
version = "0.1.0"
description = "Byte streams, stream reassembly, ARP-resolving network interfaces, longest-prefix-match routing and SHA-256 in pure Python"
requires-python = ">=3.10"
dependencies = []
keywords = ["networking", "arp", "ethernet", "ipv4", "router", "reassembly", "byte-stream", "sha256"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
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

[tool.hatch.build.targets.wheel]
packages = ["spongenet"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
