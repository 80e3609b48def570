[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dunkasm"
version = "0.1.0"
description = "Assembler and microcode ROM generator for the Dunk 16-bit CPU"
requires-python = ">=3.10"
dependencies = []
keywords = ["assembler", "microcode", "cpu", "rom", "homebrew-computer"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Assemblers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
dunkasm = "dunkasm.assembler:main"
dunkprog = "dunkasm.microcode:main"

[tool.hatch.build.targets.wheel]
packages = ["dunkasm"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
