"""
Discovery Catalog - Load-once store of x402 discovery resources.

The catalog is read from a static JSON fixture of the form
``{"items": [<DiscoveryResource>, ...]}``. It is loaded exactly once per
loader, even when several tool calls hit it concurrently, and is never
mutated afterwards. A failed load is cached too, so every caller observes
the same outcome.

Example Usage:
    # Server startup
    catalog = CatalogLoader.get_instance(config.fixture_path)
    resources = catalog.load()

    # Tests - inject a fresh loader instead of the process-wide one
    catalog = CatalogLoader(tmp_path / "fixture.json")
"""

import json
import logging
import threading
from pathlib import Path
from typing import List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from .config import DEFAULT_FIXTURE_PATH
from .errors import LoadError
from .models import DiscoveryResource

logger = logging.getLogger(__name__)


class CatalogLoader:
    """
    Lazily loads and caches the discovery catalog.

    Features:
    - Exactly-once parsing guarded by a lock
    - Cached result or cached LoadError for all later callers
    - Singleton access for the server, plain construction for tests
    """

    _instance: Optional['CatalogLoader'] = None
    _instance_lock = threading.Lock()

    def __init__(self, path: Union[str, Path, None] = None):
        self.path = Path(path) if path else DEFAULT_FIXTURE_PATH
        self._lock = threading.Lock()
        self._loaded = False
        self._resources: List[DiscoveryResource] = []
        self._error: Optional[LoadError] = None

    @classmethod
    def get_instance(cls, path: Union[str, Path, None] = None) -> 'CatalogLoader':
        """
        Get the process-wide catalog loader.

        The path is only honoured by the call that creates the instance.
        """
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = CatalogLoader(path)
                logger.debug(f"Created CatalogLoader for {cls._instance.path}")
            return cls._instance

    @classmethod
    def reset_instance(cls):
        """Drop the process-wide loader (tests only)."""
        with cls._instance_lock:
            cls._instance = None

    def load(self) -> List[DiscoveryResource]:
        """
        Return the catalog, parsing the fixture on first use.

        Raises:
            LoadError: If the fixture is missing or malformed (cached)
        """
        with self._lock:
            if not self._loaded:
                try:
                    self._resources = self._read_fixture()
                    logger.info(f"Loaded {len(self._resources)} discovery resources from {self.path}")
                except LoadError as e:
                    logger.error(f"Failed to load discovery catalog: {e}")
                    self._error = e
                self._loaded = True

        if self._error is not None:
            raise self._error
        return self._resources

    def _read_fixture(self) -> List[DiscoveryResource]:
        try:
            payload = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise LoadError(f"read fixtures: {e}") from e

        try:
            decoded = json.loads(payload)
        except json.JSONDecodeError as e:
            raise LoadError(f"parse fixtures: {e}") from e

        if not isinstance(decoded, dict) or not isinstance(decoded.get("items"), list):
            raise LoadError("parse fixtures: expected an object with an 'items' array")

        try:
            return [DiscoveryResource.model_validate(item) for item in decoded["items"]]
        except PydanticValidationError as e:
            raise LoadError(f"parse fixtures: invalid discovery resource: {e}") from e

    def __repr__(self) -> str:
        state = "error" if self._error else ("loaded" if self._loaded else "pending")
        return f"CatalogLoader(path='{self.path}', state={state})"
