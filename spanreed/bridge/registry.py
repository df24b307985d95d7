import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from spanreed.logger import Logger, get_logger
from spanreed.protocol.errors import MethodNotFoundError


@dataclass(frozen=True)
class HandlerResult:
    """
    Outcome of one handler call: either a value (`success=True`) or a
    human-readable failure message. Handlers build exactly one of these and
    return it; raising is reserved for faults.
    """
    success: bool
    value: Any = field(default=None)

    @classmethod
    def ok(cls, value: Any = None) -> "HandlerResult":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, message: str) -> "HandlerResult":
        return cls(success=False, value=message)


Handler = Callable[[Any, Any], Awaitable[HandlerResult]]


@dataclass(frozen=True)
class MethodHandler:
    name: str
    fn: Handler


class HandlerRegistry:
    """
    Static mapping from method name to async handler.

    Handlers are attached with the `method` decorator before the bridge
    starts; the set is not expected to change afterwards.
    """

    def __init__(self, logger: Optional[Logger] = None):
        self.logger = logger or get_logger(__name__)
        self._index: dict[str, MethodHandler] = {}

    def method(self, name: str):
        if not isinstance(name, str) or not name.strip():
            raise TypeError(f"Method name must be a non-empty string. Provided: {name!r}")
        name = name.strip()

        def decorator(fn: Handler) -> Handler:

            # ----[ Safety Checks ]----

            if not inspect.iscoroutinefunction(fn):
                raise TypeError(f"@method handler '{fn.__name__}' must be async")

            sig = inspect.signature(fn)
            if len(sig.parameters) != 2:
                raise TypeError(f"@method '{fn.__name__}' must accept exactly two arguments (host, params)")

            # ----[ Registration ]----

            if name in self._index:
                self.logger.warning(f"Method '{name}' already exists. Overwriting.")
            self._index[name] = MethodHandler(name=name, fn=fn)

            return fn

        return decorator

    def lookup(self, name: str) -> MethodHandler:
        try:
            return self._index[name]
        except KeyError:
            raise MethodNotFoundError(name) from None

    def __contains__(self, name: str) -> bool:
        return name in self._index

    def names(self) -> list[str]:
        return list(self._index)
