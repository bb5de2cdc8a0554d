"""Bastion Deploy CLI commands."""
