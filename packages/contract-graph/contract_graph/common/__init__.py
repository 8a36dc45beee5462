from .observability import bind_context, get_logger, setup_logging

__all__ = ["bind_context", "get_logger", "setup_logging"]
