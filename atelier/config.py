"""
Cart Configuration

Environment-driven settings for the cart engine, its storage backends and
the analytics collaborator.
"""

import os

# Storage keys (shared with the storefront's browser storage layout)
CART_STORAGE_KEY = os.environ.get("CART_STORAGE_KEY", "cart")
CART_LAST_ADDED_KEY = os.environ.get("CART_LAST_ADDED_KEY", "atelier-cart-last-added-at")

# Restore dialog policy
CART_STALE_AFTER_MS = int(os.environ.get("CART_STALE_AFTER_MS", str(24 * 60 * 60 * 1000)))
CART_RESTORE_SETTLE_DELAY = float(os.environ.get("CART_RESTORE_SETTLE_DELAY", "0.5"))  # seconds

# Defaults applied to products that omit them
DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "USD")
DEFAULT_STORE_NAME = os.environ.get("DEFAULT_STORE_NAME", "Tienda")

# Upstash Redis (optional persistent store)
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")
CART_TTL = int(os.environ.get("CART_TTL", "0"))  # seconds, 0 = no expiry

# GA4 Measurement Protocol
GA_MEASUREMENT_ID = os.environ.get("GA_MEASUREMENT_ID", "")
GA_API_SECRET = os.environ.get("GA_API_SECRET", "")
GA_ENDPOINT = os.environ.get("GA_ENDPOINT", "https://www.google-analytics.com/mp/collect")
GA_TIMEOUT = float(os.environ.get("GA_TIMEOUT", "2.0"))
ANALYTICS_ENABLED = bool(GA_MEASUREMENT_ID and GA_API_SECRET)
ANALYTICS_WORKERS = int(os.environ.get("ANALYTICS_WORKERS", "2"))

# Fallback contact number for store orders
WHATSAPP_PHONE = os.environ.get("WHATSAPP_PHONE", "")
