"""Default values for every configuration section."""

from .background import *  # noqa: F401,F403
from .background import __all__ as _background_all
from .server import *  # noqa: F401,F403
from .server import __all__ as _server_all
from .storage import *  # noqa: F401,F403
from .storage import __all__ as _storage_all

__all__ = [*_server_all, *_storage_all, *_background_all]
