"""Custom exceptions for flowsmith."""


class FlowsmithError(Exception):
    """Base exception for flowsmith."""

    pass


class PreconditionError(FlowsmithError, TypeError):
    """A caller passed the wrong structure (e.g. a string where a list is required)."""

    pass


class TemplateLoadError(FlowsmithError):
    """A template file could not be read or decoded."""

    pass


class GraphFormatError(FlowsmithError, ValueError):
    """A serialized workflow graph document is malformed."""

    pass


def require_list(value, name: str) -> list:
    """Return ``value`` as a list or raise PreconditionError.

    Tuples are accepted; strings, mappings and scalars are not.
    """
    if isinstance(value, (list, tuple)):
        return list(value)
    raise PreconditionError(
        f"{name} must be a list, got {type(value).__name__}"
    )
