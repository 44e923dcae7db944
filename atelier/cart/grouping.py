"""Group cart lines by store, one order per store."""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List, Optional

from atelier.config import DEFAULT_CURRENCY, DEFAULT_STORE_NAME, WHATSAPP_PHONE
from atelier.money import ZERO
from .models import CartItem
from .products import StoreUser

UNKNOWN_STORE_ID = "unknown"


@dataclass
class StoreGroup:
    """Cart lines from one store with merged store contact data."""
    store_id: str
    store_name: str
    items: List[CartItem] = field(default_factory=list)
    total: Decimal = ZERO
    currency: str = DEFAULT_CURRENCY
    store_logo: Optional[str] = None
    store_instagram: Optional[str] = None
    store_tiktok: Optional[str] = None
    store_phone_number: Optional[str] = None
    store_users: List[StoreUser] = field(default_factory=list)

    @property
    def contact_users(self) -> List[StoreUser]:
        """Store users that can be contacted by phone."""
        return [u for u in self.store_users if u.has_phone()]

    def absorb(self, item: CartItem) -> None:
        self.items.append(item)
        self.total += item.total_price

        if self.store_logo is None and item.store_logo is not None:
            self.store_logo = item.store_logo
        if not self.store_instagram and item.store_instagram:
            self.store_instagram = item.store_instagram
        if self.store_tiktok is None and item.store_tiktok is not None:
            self.store_tiktok = item.store_tiktok
        if not self.store_phone_number and item.store_phone_number:
            self.store_phone_number = item.store_phone_number

        known_ids = {u.id for u in self.store_users}
        for user in item.store_users:
            if user.id not in known_ids:
                self.store_users.append(user)
                known_ids.add(user.id)


def group_by_store(items: Iterable[CartItem]) -> List[StoreGroup]:
    """Split cart lines per store, keeping the order stores first appear in."""
    groups: dict[str, StoreGroup] = {}
    for item in items:
        store_id = item.store_id or UNKNOWN_STORE_ID
        group = groups.get(store_id)
        if group is None:
            group = StoreGroup(
                store_id=store_id,
                store_name=item.store_name or DEFAULT_STORE_NAME,
                currency=item.currency or DEFAULT_CURRENCY,
            )
            groups[store_id] = group
        group.absorb(item)
    return list(groups.values())


def default_contact_phone(group: StoreGroup, fallback: str = WHATSAPP_PHONE) -> str:
    """First store user with a phone, then the store phone, then the fallback."""
    users = group.contact_users
    if users:
        return str(users[0].phone_number).strip()
    return group.store_phone_number or fallback
