"""Exceptions raised by the OSM feature classifier."""

from __future__ import annotations


class ClassificationError(ValueError):
    """Base class for invalid classifier input."""


class SchemaError(ClassificationError):
    """The feature collection does not have the shape the classifier needs."""


class ConfigurationError(ClassificationError):
    """A classification table or runtime setting is malformed."""


__all__ = ["ClassificationError", "ConfigurationError", "SchemaError"]
