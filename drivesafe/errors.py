class DriveSafeError(Exception):
    """Base class for driving-mode engine errors."""


class TransientDispatchError(DriveSafeError):
    """A side-effect request (SMS, decline, accept, speech...) failed.

    Never fatal: the engine records it in the trip log and keeps going.
    """


class ConfigurationError(DriveSafeError):
    """A persisted settings or trip-history blob could not be read."""
