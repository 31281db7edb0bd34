"""Command line interface for helm_release_tasks."""
