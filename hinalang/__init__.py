"""Compiler front end for the hinalang language: lexer, parser, AST dump and textual IR generation."""

__version__ = "0.1.0"
__all__ = ["__version__"]