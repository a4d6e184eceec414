"""Error taxonomy for the check."""


class CheckError(Exception):
    """Base class for all check errors."""


class ConfigError(CheckError, ValueError):
    """Invalid or incomplete configuration. Raised before any query runs."""


class TransportError(CheckError):
    """The HTTP call to the backend could not complete."""


class BackendError(CheckError):
    """The backend answered with a body that is not usable query data."""
