"""Error kinds raised by the calculation engine.

Every error is raised before any state is mutated, so the object that raised
it is left exactly as it was.
"""


class SatisflowError(Exception):
    """Base class for all engine errors."""


class ValidationError(SatisflowError, ValueError):
    """A value is out of range (clock speed, overclock, count, augments, duplicate id)."""


class IncompatibilityError(SatisflowError, ValueError):
    """Two catalog entries cannot be combined (fuel/generator, extractor/item)."""


class StructuralError(SatisflowError, ValueError):
    """A collection that must not be empty is empty."""


class UnknownReferenceError(SatisflowError, LookupError):
    """An id does not name an existing factory, logistics line or extractor."""


class VersionError(SatisflowError, ValueError):
    """A save file version is malformed or cannot be loaded by this engine."""


class InvalidVersionFormatError(VersionError):
    """A version string is not MAJOR.MINOR.PATCH."""


class SaveTooNewError(VersionError):
    """The save file has a higher major version than the engine."""


class SaveTooOldError(VersionError):
    """The save file has a lower major version than the engine and cannot be migrated."""


class SnapshotFormatError(SatisflowError, ValueError):
    """A save file payload is missing fields or holds values of the wrong shape."""
