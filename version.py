"""Save file versions and the major-version compatibility gate."""

from dataclasses import dataclass

from errors import InvalidVersionFormatError, SaveTooNewError, SaveTooOldError

ENGINE_VERSION = "0.1.0"


@dataclass(frozen=True, order=True)
class SaveVersion:
    """MAJOR.MINOR.PATCH version of a save file; ordered field by field"""

    major: int
    minor: int
    patch: int

    @classmethod
    def parse(cls, text: str) -> "SaveVersion":
        """Parse a "MAJOR.MINOR.PATCH" string.

        Precondition:
            text is a string

        Postcondition:
            returns the version with the three parsed components

        Args:
            text: version string such as "1.2.3"

        Returns:
            parsed SaveVersion

        Raises:
            InvalidVersionFormatError: if text does not have exactly three
                non-negative integer components
        """
        parts = text.split(".")
        if len(parts) != 3:
            raise InvalidVersionFormatError(f"Invalid version format: {text!r}")
        if not all(part.isascii() and part.isdigit() for part in parts):
            raise InvalidVersionFormatError(f"Invalid version number in {text!r}")
        return cls(*(int(part) for part in parts))

    @classmethod
    def current(cls) -> "SaveVersion":
        return cls.parse(ENGINE_VERSION)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def is_compatible_with(self, other: "SaveVersion") -> bool:
        """Versions are compatible when their major components are equal."""
        return self.major == other.major

    def is_newer_than(self, other: "SaveVersion") -> bool:
        return self > other

    def is_older_than(self, other: "SaveVersion") -> bool:
        return self < other


def check_compatibility(save_version: SaveVersion) -> None:
    """Decide whether a save written at save_version can be loaded.

    Raises:
        SaveTooNewError: if the save has a higher major version than the engine
        SaveTooOldError: if the save has a lower major version (migration not implemented)
    """
    current = SaveVersion.current()
    if save_version.is_compatible_with(current):
        return
    if save_version.major > current.major:
        raise SaveTooNewError(
            f"Save file version {save_version} is newer than engine version {current}"
        )
    raise SaveTooOldError(
        f"Save file version {save_version} is older than engine version {current}: "
        f"migration not implemented"
    )
