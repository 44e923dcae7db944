"""
Atelier Cart

Client-side shopping cart for the Atelier storefront:
- cart: cart engine, reducer, storage and stale cart guard
- analytics: add/remove cart events
- money: Decimal helpers for loosely typed amounts
- config: environment settings

Note: Imports are lazy so `atelier.config` can be read without pulling in
the storage and analytics clients.
"""

__all__ = [
    "CartEngine",
    "StalenessGuard",
    "create_cart_engine",
]


def __getattr__(name):
    """Lazy attribute access."""
    if name == "CartEngine":
        from atelier.cart import CartEngine
        return CartEngine
    if name == "StalenessGuard":
        from atelier.cart import StalenessGuard
        return StalenessGuard
    if name == "create_cart_engine":
        from atelier.cart import create_cart_engine
        return create_cart_engine
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
