"""mnemos: spaced-repetition scheduling and learner ability estimation."""

from mnemos.consts import VERSION

__version__ = VERSION
