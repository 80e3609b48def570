"""Assembler, tokenizer and microcode ROM generator for the Dunk 16-bit CPU."""

__version__ = "0.1.0"