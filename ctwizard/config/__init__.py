"""Loaders for the requirement manifest and container defaults."""
from ctwizard.config.loader import ConfigValidationError, load_defaults
from ctwizard.config.manifest import load_manifest, parse_manifest

__all__ = [
    'ConfigValidationError',
    'load_defaults',
    'load_manifest',
    'parse_manifest',
]
