"""Errors raised while composing the platform resource graph."""


class CompositionError(Exception):
    """The resource graph cannot be turned into a deployment plan."""


class InvalidParameterError(CompositionError):
    """A configuration value is out of range or inconsistent with another."""


class UnresolvedReferenceError(CompositionError):
    """A binding names a construct that is missing or declared later."""


class PermissionGrantError(CompositionError):
    """A permission grant is missing its grantee or its resource."""
