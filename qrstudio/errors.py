"""Exception types raised by qrstudio."""


class StudioError(Exception):
    """Base class for qrstudio errors."""


class InvalidStyleError(StudioError, ValueError):
    """A style field holds a value outside its allowed domain."""


class LogoTooLargeError(StudioError, ValueError):
    """Uploaded logo exceeds the size ceiling."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"Logo must be under {limit // (1024 * 1024)} MB")


class LogoDecodeError(StudioError, ValueError):
    """Logo bytes are not a decodable image."""


class GalleryEntryNotFound(StudioError, KeyError):
    """No saved entry with the requested id."""

    def __str__(self):
        return f"no saved QR with id {self.args[0]!r}"
