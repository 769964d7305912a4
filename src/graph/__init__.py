"""Dependency graph resolution and tree traversal."""
