"""
chameo errors

Every failure chameo knows how to describe is raised as one of these. Lower level modules
raise, and the pipeline decides whether a given error is fatal for the current run (see
chameo.pipeline). Library exceptions (requests, Pillow, subprocess) are wrapped into one
of these classes at the point they are caught so the CLI only has to deal with ChameoError.
"""


class ChameoError(Exception):
    """Base class for all errors raised by chameo."""

    pass


class ToolMissing(ChameoError):
    """Raised when a required external program (e.g. swww) is not installed."""

    pass


class LockContention(ChameoError):
    """Raised when another chameo run holds the wallpaper directory lock for too long."""

    pass


class DisplayError(ChameoError):
    """Raised when the display tool fails to apply a wallpaper."""

    pass


class FetchError(ChameoError):
    """
    Base class for every failure that can happen while filling a slot with a new
    wallpaper. Fatal on first run, recoverable while refilling 'next'.
    """

    pass


class NetworkFailure(FetchError):
    """Raised when the catalog can't be reached or doesn't return a parseable response."""

    pass


class EmptyCatalog(FetchError):
    """Raised when the catalog returned a valid but empty set of candidates."""

    pass


class ResolutionExhausted(FetchError):
    """Raised when no candidate meeting the minimum resolution was drawn in time."""

    pass


class DownloadFailure(FetchError):
    """Raised when downloading the selected image fails or the payload is not an image."""

    pass


class ThemeError(ChameoError):
    """Base class for failures in the theming stage."""

    pass


class SourceImageMissing(ThemeError):
    """Raised when the image to extract a palette from is missing or unreadable."""

    pass


class QuantizerUnavailable(ThemeError):
    """Raised when the color reduction step can't be run on the image."""

    pass


class TargetNotFound(ThemeError):
    """Raised when a consumer config that must already exist is missing."""

    pass
