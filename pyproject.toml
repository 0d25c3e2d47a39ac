[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "abirtti"
version = "0.1.0"
description = "A model of Itanium C++ ABI run-time type information: exception handler matching and dynamic_cast over simulated object layouts."
requires-python = ">=3.10"
dependencies = []
keywords = ["abi", "rtti", "dynamic_cast", "typeinfo", "exceptions", "compilers"]
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
    "Topic :: Software Development :: Compilers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["abirtti"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
