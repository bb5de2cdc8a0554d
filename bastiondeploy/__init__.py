"""Bastion Deploy - push code to hosts directly or through a bastion."""

__version__ = "1.0.0"
