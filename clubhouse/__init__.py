"""Durable agent workspaces for clubhouse projects."""

__version__ = "0.1.0"
