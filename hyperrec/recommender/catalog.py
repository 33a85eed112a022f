"""Catalog access: the read and write API over users and products.

User and product records belong to external services. The recommender
reads them through ``CatalogRepository`` and writes nothing back except the
product analytics counters bumped by tracked interactions.
``InMemoryCatalog`` is the implementation used by the service, the scripts
and the tests.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

from hyperrec.exceptions import UnknownProductError
from hyperrec.recommender.records import InteractionKind, Product, User

# Configure module logger
logger = logging.getLogger(__name__)


class CatalogRepository(ABC):
    """Narrow interface to the external user and product stores."""

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]:
        """Return the user record, or None if it does not exist."""

    @abstractmethod
    def get_products(self, product_ids: Iterable[str]) -> Dict[str, Product]:
        """Return the known products among ``product_ids`` keyed by id."""

    @abstractmethod
    def active_users(self) -> List[User]:
        """All active users."""

    @abstractmethod
    def active_products(self) -> List[Product]:
        """All active products."""

    @abstractmethod
    def increment_counter(self, product_id: str, kind: InteractionKind) -> Product:
        """Bump the analytics counter matching ``kind``.

        Raises:
            UnknownProductError: If the product does not exist.
        """

    def get_product(self, product_id: str) -> Optional[Product]:
        return self.get_products([product_id]).get(product_id)

    def featured_products(self) -> List[Product]:
        return [p for p in self.active_products() if p.featured]


class InMemoryCatalog(CatalogRepository):
    """Dictionary-backed catalog."""

    def __init__(
        self,
        users: Optional[Iterable[User]] = None,
        products: Optional[Iterable[Product]] = None,
    ):
        self._users: Dict[str, User] = {u.id: u for u in users or []}
        self._products: Dict[str, Product] = {p.id: p for p in products or []}
        self._lock = threading.Lock()

    @classmethod
    def from_records(
        cls,
        users: Iterable[Dict[str, Any]] = (),
        products: Iterable[Dict[str, Any]] = (),
    ) -> "InMemoryCatalog":
        """Build a catalog from raw snake_case records."""
        return cls(
            users=[User.from_dict(u) for u in users],
            products=[Product.from_dict(p) for p in products],
        )

    def add_user(self, user: User) -> None:
        with self._lock:
            self._users[user.id] = user

    def add_product(self, product: Product) -> None:
        with self._lock:
            self._products[product.id] = product

    def get_user(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def get_products(self, product_ids: Iterable[str]) -> Dict[str, Product]:
        return {pid: self._products[pid] for pid in product_ids if pid in self._products}

    def active_users(self) -> List[User]:
        return [u for u in list(self._users.values()) if u.is_active]

    def active_products(self) -> List[Product]:
        return [p for p in list(self._products.values()) if p.is_active]

    def increment_counter(self, product_id: str, kind: InteractionKind) -> Product:
        kind = InteractionKind(kind)

        with self._lock:
            product = self._products.get(product_id)
            if product is None:
                raise UnknownProductError(product_id)

            if kind == InteractionKind.VIEW:
                product.views += 1
            elif kind == InteractionKind.PURCHASE:
                product.purchases += 1
                product.conversion_rate = (
                    product.purchases / product.views * 100 if product.views > 0 else 0.0
                )
            elif kind == InteractionKind.ADD_TO_CART:
                product.add_to_cart += 1
            elif kind == InteractionKind.ADD_TO_WISHLIST:
                product.add_to_wishlist += 1

        logger.debug(f"Incremented {kind.value} counter for product {product_id}")
        return product

    def __len__(self) -> int:
        return len(self._products)
