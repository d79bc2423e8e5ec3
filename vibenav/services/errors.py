"""Error taxonomy shared by the routing, scoring and navigation services."""


class VibeNavError(Exception):
    """Base class for errors raised by VibeNav services."""


class ConfigurationError(VibeNavError, ValueError):
    """Unknown emotion/plan key or missing required configuration."""


class RouteValidationError(VibeNavError, ValueError):
    """Degenerate input such as an empty segment list or zero candidates."""


class ExternalServiceError(VibeNavError, RuntimeError):
    """Routing engine, feature lookup or persistence failure."""


class NotFoundError(VibeNavError, LookupError):
    """Unknown route or navigation session id."""
