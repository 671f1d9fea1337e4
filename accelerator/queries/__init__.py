from .errors import UpstreamQueryError
from .current_height import get_current_height
from .catching_up import is_server_catching_up

__all__ = ["UpstreamQueryError", "get_current_height", "is_server_catching_up"]
