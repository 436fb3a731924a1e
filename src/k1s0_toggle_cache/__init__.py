"""k1s0 toggle cache library."""

from .cache import ToggleCache
from .client import ToggleStore
from .config import (
    ConfigError,
    ConfigErrorCodes,
    LogSection,
    StoreSection,
    ToggleCacheConfig,
    load,
)
from .events import Event, ToggleEventBus, ToggleEventType
from .exceptions import (
    FlagNotFoundError,
    ToggleCacheError,
    ToggleCacheErrorCodes,
    ToggleStoreError,
    UninitializedCacheError,
)
from .http_client import EtcdToggleStore
from .logger import configure_logging, new_logger
from .memory import InMemoryToggleStore
from .models import CacheState, StoreNode
from .parser import diff_flags, parse_flag_value, parse_nodes
from .scheduler import PeriodicTask

__all__ = [
    "CacheState",
    "ConfigError",
    "ConfigErrorCodes",
    "EtcdToggleStore",
    "Event",
    "FlagNotFoundError",
    "InMemoryToggleStore",
    "LogSection",
    "PeriodicTask",
    "StoreNode",
    "StoreSection",
    "ToggleCache",
    "ToggleCacheConfig",
    "ToggleCacheError",
    "ToggleCacheErrorCodes",
    "ToggleEventBus",
    "ToggleEventType",
    "ToggleStore",
    "ToggleStoreError",
    "UninitializedCacheError",
    "configure_logging",
    "diff_flags",
    "load",
    "new_logger",
    "parse_flag_value",
    "parse_nodes",
]
