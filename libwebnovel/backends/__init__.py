import logging
from typing import Optional

from ..config import config_manager
from ..core_logic import BackendRegistry
from ..fetch_client import FetchClient
from .freewebnovel import FreeWebNovel
from .libread import LibRead
from .lightnovelworld import LightNovelWorld
from .royalroad import RoyalRoad

logger = logging.getLogger(__name__)

# Registration order: the first backend matching a URL wins
BUILTIN_BACKENDS = [
    RoyalRoad,
    FreeWebNovel,
    LightNovelWorld,
    LibRead,
]


def default_registry(client: Optional[FetchClient] = None) -> BackendRegistry:
    """
    Returns a registry holding the enabled built-in backends.

    ``enabled_backends`` in the configuration lists the keys to enable; when it
    is unset each backend's ``is_enabled_by_default`` decides.
    """
    enabled = config_manager.get_list('enabled_backends')
    registry = BackendRegistry(client)
    for backend in BUILTIN_BACKENDS:
        if enabled is not None:
            if backend.key not in enabled:
                continue
        elif not backend.is_enabled_by_default:
            continue
        registry.register(backend)
    logger.debug(f"Enabled backends: {registry.keys()}")
    return registry


__all__ = [
    "BUILTIN_BACKENDS",
    "FreeWebNovel",
    "LibRead",
    "LightNovelWorld",
    "RoyalRoad",
    "default_registry",
]
