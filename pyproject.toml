[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ulutils"
version = "0.0.1"
description = "Small system administration utilities: lsmem, lslocks, mcookie, rev, mesg, mountpoint and renice"
requires-python = ">=3.10"
dependencies = []
keywords = ["cli", "lsmem", "lslocks", "mcookie", "rev", "mesg", "mountpoint", "renice", "sysfs", "procfs"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
lsmem = "ulutils.lsmem:main"
lslocks = "ulutils.lslocks.cli:main"
mcookie = "ulutils.mcookie:main"
rev = "ulutils.rev:main"
mesg = "ulutils.mesg:main"
mountpoint = "ulutils.mountpoint:main"
renice = "ulutils.renice:main"

[tool.hatch.build.targets.wheel]
packages = ["ulutils"]

[tool.pytest.ini_options]
addopts = "-ra"
