"""
Utility modules for menu sync
"""
from .rw_lock import ReadWriteLock
from .sync_config_loader import SyncConfig, load_sync_config

__all__ = [
    'ReadWriteLock',
    'SyncConfig',
    'load_sync_config',
]
