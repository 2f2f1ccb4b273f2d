from .base_handler import BaseHandler, HandlerDependencies
from .intent_handlers import build_intent_handlers
from .follow_up_handlers import build_follow_up_handlers

__all__ = [
    "BaseHandler",
    "HandlerDependencies",
    "build_intent_handlers",
    "build_follow_up_handlers",
]
