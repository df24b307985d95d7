"""
Error taxonomy of the bridge. The dispatch loop is the containment boundary:
none of these escapes a cycle.
"""


class SpanreedError(Exception):
    """Base class for every bridge error."""
    pass

class DecodeError(SpanreedError):
    """Payload is not a JSON object or lacks `method`/`request_id`. No reply is possible."""
    pass

class MethodNotFoundError(SpanreedError):
    """Raised by the registry when no handler is bound to a method name."""

    def __init__(self, method: str):
        super().__init__(f"unknown method {method}")
        self.method = method

class HandlerFault(SpanreedError):
    """A handler could not complete the request."""
    pass

class CapabilityUnavailableError(HandlerFault):
    """A host collaborator the handler relies on (e.g. the query engine) is absent."""
    pass

class TransportFault(SpanreedError):
    """Connection or publish/pop failure on the queue transport."""
    pass

class ConfigurationFault(SpanreedError):
    """The active environment has no user id or no queue URL."""
    pass
