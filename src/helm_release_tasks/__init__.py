"""Helm release management exposed as build-lifecycle tasks."""

__version__ = "0.1.0"
