"""
Taxonomy Store

Owns the user's category and client lists. Persisted locally through a
key-value collaborator; nothing here touches the remote ledger store.

INVARIANTS:
- Category names are unique per type, compared trimmed and
  case-insensitively. Enforced on add and on rename.
- Every mutation writes the full list back before it becomes current;
  a failed write leaves the in-memory lists unchanged.
- The lists handed out are tuples; callers cannot mutate them in place.

The Ledger Store reads this store to validate transactions but never
writes to it.
"""

from typing import Optional

import structlog

from cashledger.audit import AuditLogger
from cashledger.errors import (
    CategoryNotFoundError,
    ClientNotFoundError,
    DuplicateCategoryError,
    InvalidCategoryError,
)
from cashledger.models.audit import AuditEventType
from cashledger.models.ledger import (
    Category,
    Client,
    TransactionType,
    category_key,
)
from cashledger.services.storage import KeyValueStorageInterface
from cashledger.taxonomy.defaults import get_default_categories


CATEGORIES_KEY = "categories"
CLIENTS_KEY = "clients"

logger = structlog.get_logger(__name__)


class TaxonomyStore:
    """Categories and clients, with (name, type) lookup."""

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger
        self._categories: list[Category] = []
        self._clients: list[Client] = []
        self._by_key: dict[tuple[str, TransactionType], Category] = {}

    # -------------------------------------------------------------------------
    # Loading / persistence
    # -------------------------------------------------------------------------

    def load(self) -> None:
        """
        Read both lists from storage.

        Seeds (and persists) the default categories when none were ever saved.
        Duplicate (name, type) entries in an old file are dropped, first wins.
        """
        raw_categories = self._storage.load(CATEGORIES_KEY)
        if raw_categories is None:
            defaults = get_default_categories()
            self._save_categories(defaults)
            self._categories = defaults
        else:
            self._categories = []
            seen = set()
            for raw in raw_categories:
                category = Category.model_validate(raw)
                if category.key in seen:
                    logger.warning(
                        "duplicate_category_dropped",
                        name=category.name,
                        type=category.type.value,
                    )
                    continue
                seen.add(category.key)
                self._categories.append(category)

        raw_clients = self._storage.load(CLIENTS_KEY) or []
        self._clients = [Client.model_validate(raw) for raw in raw_clients]

        self._reindex()
        logger.info(
            "taxonomy_loaded",
            categories=len(self._categories),
            clients=len(self._clients),
        )

    def _reindex(self) -> None:
        self._by_key = {c.key: c for c in self._categories}

    def _save_categories(self, categories: list[Category]) -> None:
        self._storage.save(
            CATEGORIES_KEY,
            [c.model_dump(mode="json") for c in categories],
        )

    def _save_clients(self, clients: list[Client]) -> None:
        self._storage.save(
            CLIENTS_KEY,
            [c.model_dump(mode="json") for c in clients],
        )

    def _commit_categories(self, categories: list[Category]) -> None:
        """Persist a new category list, then make it current."""
        self._save_categories(categories)
        self._categories = categories
        self._reindex()

    def _commit_clients(self, clients: list[Client]) -> None:
        self._save_clients(clients)
        self._clients = clients

    async def _audit(
        self,
        event_type: AuditEventType,
        entity_type: str,
        entity_id: str,
        name: str,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_taxonomy_changed(
                event_type=event_type,
                entity_type=entity_type,
                entity_id=entity_id,
                name=name,
            )

    # -------------------------------------------------------------------------
    # Read views
    # -------------------------------------------------------------------------

    @property
    def categories(self) -> tuple[Category, ...]:
        return tuple(self._categories)

    @property
    def clients(self) -> tuple[Client, ...]:
        return tuple(self._clients)

    def categories_of_type(self, type_: TransactionType) -> tuple[Category, ...]:
        type_ = TransactionType(type_)
        return tuple(c for c in self._categories if c.type == type_)

    def find_category(self, name: str, type_: TransactionType) -> Optional[Category]:
        """Look up a category by (name, type)."""
        return self._by_key.get(category_key(name, type_))

    def require_category(self, name: str, type_: TransactionType) -> Category:
        """
        Look up a category by (name, type).

        Raises:
            InvalidCategoryError: If no category of that type has that name
        """
        category = self.find_category(name, type_)
        if category is None:
            raise InvalidCategoryError(name, type_)
        return category

    def find_client(self, name: str) -> Optional[Client]:
        wanted = name.strip().casefold()
        for client in self._clients:
            if client.name.casefold() == wanted:
                return client
        return None

    def _get_category(self, category_id: str) -> Category:
        for category in self._categories:
            if category.id == category_id:
                return category
        raise CategoryNotFoundError(category_id)

    # -------------------------------------------------------------------------
    # Category mutations
    # -------------------------------------------------------------------------

    async def add_category(
        self,
        name: str,
        type_: TransactionType,
        color: str = "#6B7280",
    ) -> Category:
        """
        Add a category.

        Raises:
            DuplicateCategoryError: If (name, type) already exists
        """
        category = Category(name=name, type=type_, color=color)
        if category.key in self._by_key:
            raise DuplicateCategoryError(category.name, category.type)

        self._commit_categories([*self._categories, category])

        await self._audit(AuditEventType.CATEGORY_ADDED, "category", category.id, category.name)
        return category

    async def update_category(
        self,
        category_id: str,
        name: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Category:
        """
        Rename and/or recolor a category in place, keeping its id.

        The type never changes; transactions would otherwise point at a
        category of the wrong type.

        Raises:
            CategoryNotFoundError: If the id is unknown
            DuplicateCategoryError: If the new name collides within the type
        """
        current = self._get_category(category_id)
        updates = {}
        if name is not None:
            updates["name"] = name
        if color is not None:
            updates["color"] = color
        if not updates:
            return current

        updated = Category.model_validate({**current.model_dump(), **updates})
        clash = self._by_key.get(updated.key)
        if clash is not None and clash.id != category_id:
            raise DuplicateCategoryError(updated.name, updated.type)

        self._commit_categories(
            [updated if c.id == category_id else c for c in self._categories]
        )

        await self._audit(AuditEventType.CATEGORY_UPDATED, "category", updated.id, updated.name)
        return updated

    async def delete_category(self, category_id: str) -> Category:
        """
        Delete a category.

        Existing transactions keep their category name; they will fail
        validation on their next edit until re-categorized.
        """
        category = self._get_category(category_id)
        self._commit_categories([c for c in self._categories if c.id != category_id])

        await self._audit(AuditEventType.CATEGORY_DELETED, "category", category.id, category.name)
        return category

    # -------------------------------------------------------------------------
    # Client mutations
    # -------------------------------------------------------------------------

    async def add_client(self, name: str) -> Client:
        client = Client(name=name)
        self._commit_clients([*self._clients, client])

        await self._audit(AuditEventType.CLIENT_ADDED, "client", client.id, client.name)
        return client

    async def delete_client(self, client_id: str) -> Client:
        """
        Delete a client. Transactions naming it keep the dangling name.

        Raises:
            ClientNotFoundError: If the id is unknown
        """
        for client in self._clients:
            if client.id == client_id:
                break
        else:
            raise ClientNotFoundError(client_id)

        self._commit_clients([c for c in self._clients if c.id != client_id])

        await self._audit(AuditEventType.CLIENT_DELETED, "client", client.id, client.name)
        return client
