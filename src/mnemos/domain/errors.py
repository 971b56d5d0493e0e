"""Typed errors raised by the scheduling core and its adapters."""


class MnemosError(Exception):
    """Base class for every error this package raises on purpose."""


class InvalidQualityError(MnemosError, ValueError):
    """A review quality outside the 0-5 grading scale."""

    def __init__(self, quality: object):
        self.quality = quality
        super().__init__(f"Review quality must be an integer in [0, 5], got {quality!r}")


class InvalidContextError(MnemosError, ValueError):
    """A review context field outside its documented range."""


class RecordFormatError(MnemosError):
    """A stored record could not be parsed into a domain object."""
