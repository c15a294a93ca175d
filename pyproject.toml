[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hinalang"
version = "0.1.0"
description = "Compiler front end for the hinalang language: lexer, parser, AST dump and textual LLVM IR generation"
requires-python = ">=3.10"
dependencies = []
keywords = ["compiler", "lexer", "parser", "ast", "llvm-ir", "language"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
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

[project.scripts]
hinalang = "hinalang.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["hinalang"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
