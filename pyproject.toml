[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cmpmemsim"
version = "0.1.0"
description = "Trace-driven simulator of a chip-multiprocessor memory hierarchy: L1/L2 caches and a banked DRAM"
requires-python = ">=3.10"
dependencies = []
keywords = ["cache", "simulator", "dram", "memory-hierarchy", "computer-architecture", "trace"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
cmpmemsim = "cmpmemsim.sim:main"

[tool.hatch.build.targets.wheel]
packages = ["cmpmemsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
