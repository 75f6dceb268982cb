"""Service clients used by the deskchat sync engine."""

from .store_client import StoreClient, StoreClientConfig, load_store_config

__all__ = [
    "StoreClient",
    "StoreClientConfig",
    "load_store_config",
]
