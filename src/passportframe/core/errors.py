from __future__ import annotations


class PassportFrameError(RuntimeError):
    """Base class for errors raised by passportframe."""


class CropError(PassportFrameError):
    """The output surface for a crop could not be allocated or drawn."""


class DetectorError(PassportFrameError):
    """The face detector could not be loaded or failed while running."""


class DetectorStateError(DetectorError):
    """A detector session was used in a state that does not allow the call."""
