"""
Exceptions raised by the face label server.
"""


class FaceLabelError(Exception):
    """Base class for errors raised by this package."""


class InvalidLabelError(FaceLabelError, ValueError):
    """Label is not usable as a directory name."""

    def __init__(self, label):
        self.label = label
        super().__init__(f"Invalid label: {label!r}")


class ImageDecodeError(FaceLabelError, ValueError):
    """Bytes could not be decoded into an image."""


class SmsError(FaceLabelError):
    """Message could not be handed to the SMS provider."""
