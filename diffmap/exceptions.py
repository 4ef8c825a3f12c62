"""
Exception types raised by diffmap.

All of them are fatal for the call that raised them: there are no retries
and no partial results.
"""


class DiffmapError(Exception):
    """Base class for every error raised by the library."""


class InvalidInputError(DiffmapError, ValueError):
    """Images or options cannot be compared (count, size, bad values)."""


class UnknownProgramError(DiffmapError, LookupError):
    """A requested render output has no program in the catalog."""

    def __init__(self, name: str):
        super().__init__(f"Missing render program: {name}")
        self.name = name


class MissingOptionError(DiffmapError, LookupError):
    """An '@@name' option template has no value in the outer options."""

    def __init__(self, name: str):
        super().__init__(f"Missing option: {name}")
        self.name = name


class UnsupportedOperandError(DiffmapError, TypeError):
    """A raster of the wrong kind was handed to a typed pixel operation."""
