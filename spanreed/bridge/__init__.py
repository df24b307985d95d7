from .bridge import SpanreedBridge, LoopState
from .registry import HandlerRegistry, HandlerResult
from .handlers import default_registry
from .host import Host, QueryEngine
from .vault import FileSystemVault
