"""
Tenant Scoping

WHY: Every core operation runs on behalf of exactly one shop. Instead of a
shop_id filter sprinkled through the code, the authenticated context is
carried as a ShopScope value that is the mandatory first argument of every
service function, and every query goes through scoped_query().

SECURITY INVARIANTS:
1. ShopScope is built only from the validated session (see decorators.require_auth)
2. Queries touching shop-owned data filter on scope.shop_id
3. Rows owned by another shop are indistinguishable from missing rows
"""

from __future__ import annotations

from dataclasses import dataclass

from ..extensions import db
from ..models import Shop


class TenantAccessError(Exception):
    """Raised when no valid shop context is available."""
    pass


@dataclass(frozen=True)
class ShopScope:
    """
    Authenticated tenant context.

    shop_id is required; user_id is None only for system/CLI callers.
    """
    shop_id: int
    user_id: int | None = None

    def __post_init__(self):
        if not isinstance(self.shop_id, int) or isinstance(self.shop_id, bool) or self.shop_id <= 0:
            raise TenantAccessError("ShopScope requires a positive integer shop_id")


def scoped_query(scope: ShopScope, model):
    """
    Query a shop-owned model restricted to the scope's shop.

    Usage:
        item = scoped_query(scope, Item).filter_by(id=item_id).first()
    """
    if not hasattr(model, "shop_id"):
        raise TenantAccessError(f"{model.__name__} is not shop-scoped")
    return db.session.query(model).filter(model.shop_id == scope.shop_id)


def require_shop(scope: ShopScope) -> Shop:
    """Return the scope's shop, failing if it does not exist or is inactive."""
    shop = db.session.query(Shop).filter_by(id=scope.shop_id).first()
    if not shop or not shop.is_active:
        raise TenantAccessError("Shop not found")
    return shop
