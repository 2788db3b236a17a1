"""Exception types raised by the canvas converter."""


class ParseError(ValueError):
    """The canvas document is not valid JSON or lacks required structure."""


class StorageError(OSError):
    """Reading or writing a project file failed."""

    def __init__(self, path: str, message: str):
        super().__init__(message)
        self.path = path


class StorageNotFoundError(StorageError):
    """The requested project file does not exist."""


class StorageIOError(StorageError):
    """The project file exists (or should) but could not be read or written."""
