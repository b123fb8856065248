[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "larvaos"
version = "0.1.0"
description = "A small 32-bit x86 teaching kernel in pure Python: heap, paging, GDT/IDT encoding, FAT16, VFS, tasks and system calls"
requires-python = ">=3.10"
dependencies = []
keywords = ["kernel", "operating-system", "fat16", "paging", "x86", "education"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System Kernels",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
larvaos = "larvaos.kernel:main"

[tool.hatch.build.targets.wheel]
packages = ["larvaos"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
