"""
Common - Shared utilities.

- logging/     - Structured logging configuration
"""
