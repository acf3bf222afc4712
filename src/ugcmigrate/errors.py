"""Exceptions raised by the migration services."""


class MigrationError(Exception):
    """Base class for migration failures."""


class ItemExistsError(MigrationError):
    """A node already exists at the requested repository path."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Item already exists: {path}")
        self.path = path


class ScoreImportError(MigrationError):
    """The score import was aborted."""
