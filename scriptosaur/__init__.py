"""Scriptosaur - write video scripts in the voice of a chosen author."""

__version__ = "0.1.0"
