"""Registry of record stores, looked up by collection name."""

from typing import Dict, List, Optional

from common.logging_config import get_logger
from filehandle.exceptions import StoreAlreadyRegisteredError
from filehandle.record_store import RecordStore

logger = get_logger(__name__)


class StoreRegistry:
    """Maps collection names to mounted record stores. Injected, never global."""

    def __init__(self, stores: Optional[List[RecordStore]] = None):
        self._stores: Dict[str, RecordStore] = {}
        for store in stores or []:
            self.register(store)

    def register(self, store: RecordStore, replace: bool = False) -> RecordStore:
        """
        Register a store under its name.

        Args:
            store: Record store to register
            replace: Allow replacing a store registered under the same name

        Returns:
            The registered store

        Raises:
            StoreAlreadyRegisteredError: If the name is taken and replace is False
        """
        if store.name in self._stores and not replace:
            raise StoreAlreadyRegisteredError(f"A store named '{store.name}' is already registered")
        self._stores[store.name] = store
        logger.debug(f"Registered record store '{store.name}'")
        return store

    def unregister(self, name: str) -> Optional[RecordStore]:
        return self._stores.pop(name, None)

    def get(self, name: Optional[str]) -> Optional[RecordStore]:
        if not name:
            return None
        return self._stores.get(name)

    def names(self) -> List[str]:
        return list(self._stores.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._stores

    def __len__(self) -> int:
        return len(self._stores)
