from .bridge import SpanreedBridge, FileSystemVault, HandlerRegistry, HandlerResult
