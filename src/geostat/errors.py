"""
Exception types raised by the flattening engine.

Only malformed input and inconsistent configuration raise. Missing cells,
unparseable time values and missing derivation operands degrade to None.
"""

from typing import Dict, Any


class GeostatError(Exception):
    """Base class for all engine errors."""
    title = "Internal Server Error"


class InvalidCubeError(GeostatError, ValueError):
    """The cube shape does not match what the engine was asked to read."""
    title = "Invalid Cube"


class UnknownDatasetError(GeostatError, KeyError):
    """A dataset id has no catalogue entry."""
    title = "Dataset not found"

    def __str__(self):
        # KeyError quotes its argument
        return str(self.args[0]) if self.args else ""


class ConfigurationError(GeostatError, ValueError):
    """A dataset configuration entry is inconsistent."""
    title = "Configuration Error"


class CardinalityError(GeostatError, ValueError):
    """The series product of a cube exceeds a declared ceiling."""
    title = "Cardinality Error"


def error_envelope(exc: Exception) -> Dict[str, Any]:
    """Wrap an exception in the {success, error, message} response shape."""
    title = getattr(exc, "title", GeostatError.title)
    return {
        "success": False,
        "error": title,
        "message": str(exc) or exc.__class__.__name__,
    }
