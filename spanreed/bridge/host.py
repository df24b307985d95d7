"""
Capabilities the command handlers need from the host application.

The host is an external collaborator; `FileSystemVault` in `vault.py` is the
implementation shipped with the bridge, tests may provide their own.
"""
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, TypeVar

T = TypeVar("T")

FrontMatterFn = Callable[[dict[str, Any]], T]


class QueryEngine(ABC):
    """Declarative query engine over the indexed vault (e.g. Dataview)."""

    @abstractmethod
    async def try_query(self, query: str) -> Any:
        """Run `query` and return its structured result; raise with the engine's message on error."""
        pass


class Host(ABC):

    # Resolved once at startup; None means the capability is unavailable.
    query_engine: Optional[QueryEngine] = None

    @abstractmethod
    async def execute_command(self, command_id: str) -> None:
        """Run a named built-in command. Raises CapabilityUnavailableError if it does not exist."""
        pass

    @abstractmethod
    async def exists(self, path: str) -> bool:
        pass

    @abstractmethod
    async def process_front_matter(self, path: str, fn: FrontMatterFn) -> T:
        """
        Atomically read-modify-write the property bag of `path`.

        `fn` receives the mutable property dict and returns the outcome of
        the call. The dict is written back only if `fn` returns normally.
        """
        pass

    @abstractmethod
    async def list_files(self) -> list[str]:
        """All file paths in the host's enumeration order."""
        pass

    @abstractmethod
    async def read_text(self, path: str) -> str:
        pass

    @abstractmethod
    async def read_bytes(self, path: str) -> bytes:
        pass

    @abstractmethod
    async def rename(self, source: str, destination: str) -> None:
        pass
