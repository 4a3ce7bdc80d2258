"""Ambient infrastructure: settings, logging, errors and filesystem access."""
