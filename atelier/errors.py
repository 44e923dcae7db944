"""
Common Error Constants

Centralized messages for degraded cart states, so log lines stay consistent.
"""

# Persisted state
ERROR_CART_CORRUPTED = "Corrupted cart data in storage"
ERROR_CART_ITEM_CORRUPTED = "Skipping malformed cart item"
ERROR_LAST_ADDED_INVALID = "Unparsable last-added timestamp"

# Storage backend
ERROR_STORAGE_UNAVAILABLE = "Cart storage unavailable"
ERROR_STORAGE_WRITE = "Failed to persist cart"
ERROR_STORAGE_NOT_CONFIGURED = "UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set"

# Collaborators
ERROR_ANALYTICS_FAILED = "Analytics event failed"

# Input
ERROR_PRODUCT_INVALID = "Invalid product payload"
