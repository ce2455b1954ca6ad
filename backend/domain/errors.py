"""Errors raised by the composition engine."""


class InvalidImageError(ValueError):
    """The supplied image is missing, empty or could not be decoded."""
