from .config import settings
from .security import token_manager

__all__ = ["settings", "token_manager"]
