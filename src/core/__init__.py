"""Shared models, constants, errors, configuration and logging."""
