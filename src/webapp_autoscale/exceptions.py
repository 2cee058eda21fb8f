"""Custom exceptions for webapp-autoscale."""


class WebappAutoscaleError(Exception):
    """Base exception for webapp-autoscale errors."""

    pass


class InvalidArgumentError(WebappAutoscaleError, ValueError):
    """Argument is empty, malformed, or violates a model invariant."""

    pass


class CredentialError(WebappAutoscaleError):
    """Service principal credentials missing or unusable."""

    pass


class PolicyConfigError(WebappAutoscaleError):
    """Autoscale policy file cannot be read or contains invalid values."""

    pass
