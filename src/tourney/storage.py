"""
Key-value persistence backed by one YAML file per key.
"""
import logging
import os
import re

import yaml
from filelock import FileLock

from .errors import ValidationError

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')


class YamlStore:
    """
    Stores values under ``<data_dir>/<key>.yaml``.

    ``get`` never raises on a missing or unreadable file; it returns the
    fallback. ``set`` writes under a file lock so concurrent processes do
    not interleave writes.
    """

    def __init__(self, data_dir: str, lock_timeout: int = 10):
        self.data_dir = data_dir
        os.makedirs(data_dir, exist_ok=True)
        self._lock = FileLock(os.path.join(data_dir, '.lock'), timeout=lock_timeout)

    @property
    def lock(self) -> FileLock:
        """The write lock; hold it around a load, change and save sequence."""
        return self._lock

    def _path(self, key: str) -> str:
        if not _KEY_PATTERN.match(key or ''):
            raise ValidationError(f'Invalid storage key: {key!r}')
        return os.path.join(self.data_dir, f'{key}.yaml')

    def get(self, key: str, fallback=None):
        """Load the value stored under key, or fallback."""
        path = self._path(key)
        if not os.path.exists(path):
            return fallback
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f'Failed to parse {path}: {e}')
            return fallback
        return fallback if data is None else data

    def set(self, key: str, value):
        """Save value under key."""
        path = self._path(key)
        with self._lock:
            with open(path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(value, f, default_flow_style=False, sort_keys=False)

    def delete(self, key: str):
        path = self._path(key)
        with self._lock:
            if os.path.exists(path):
                os.remove(path)
