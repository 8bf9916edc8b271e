"""Core: configuration, errors and connections."""
