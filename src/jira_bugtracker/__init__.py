"""JIRA bug tracker plugin for security issue management hosts."""

__version__ = "1.0.0"
