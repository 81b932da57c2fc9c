"""
Exception taxonomy for the streaming engine.

- ConfigurationError: invalid frame/hop size or collaborator, raised at construction only
- AdapterError: the enhancement adapter failed or returned a malformed spectrum
- InvariantViolation: internal defect, never silently corrected
"""


class StreamError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(StreamError, ValueError):
    """Invalid engine configuration. Fatal, no partial engine is returned."""


class AdapterError(StreamError):
    """The enhancement adapter failed. The engine state is left as before the call."""


class InvariantViolation(StreamError, AssertionError):
    """Internal bookkeeping produced an impossible result."""
