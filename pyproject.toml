[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tinyunix"
version = "0.1.0"
description = "Pieces of a small Unix in pure Python: a file system image builder, Sv39 page tables, on-disk formats, a shell parser and classic user tools"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "operating-system",
    "unix",
    "file-system",
    "page-table",
    "virtual-memory",
    "shell",
    "elf",
    "virtio",
]
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
    "Topic :: System :: Operating System",
    "Topic :: System :: Filesystems",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
tinyunix-mkfs = "tinyunix.mkfs:main"
tinyunix-grep = "tinyunix.grep:main"
tinyunix-cat = "tinyunix.text:cat_main"
tinyunix-echo = "tinyunix.text:echo_main"
tinyunix-wc = "tinyunix.text:wc_main"
tinyunix-ls = "tinyunix.fileops:ls_main"
tinyunix-ln = "tinyunix.fileops:ln_main"
tinyunix-rm = "tinyunix.fileops:rm_main"
tinyunix-mkdir = "tinyunix.fileops:mkdir_main"
tinyunix-kill = "tinyunix.fileops:kill_main"

[tool.hatch.build.targets.wheel]
packages = ["tinyunix"]

[tool.hatch.build.targets.sdist]
include = ["tinyunix", "tests", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
