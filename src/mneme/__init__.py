"""mneme: spaced-repetition scheduling engine."""

from mneme.consts import VERSION

__version__ = VERSION
