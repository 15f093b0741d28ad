"""Public API of the Cached incremental memoization runtime."""

from . import constants as _constants
from . import runtime as _runtime
from .constants import *  # noqa: F401,F403
from .runtime import *  # noqa: F401,F403

__all__ = []
__all__ += getattr(_constants, "__all__", [])
__all__ += getattr(_runtime, "__all__", [])
