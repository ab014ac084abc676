"""Configuration constants with trade-off documentation.

Each constant has a rationale explaining why this specific value was chosen.
"""

# =============================================================================
# Handshake
# =============================================================================

CIPHER_ALGORITHM = "aes-256-ctr"
# Why fixed: the access service derives the same ciphertext from the secret it
# holds for the key. Any other algorithm/mode produces a hash it rejects.

ACCESS_PATH = "/access"

# =============================================================================
# Polling
# =============================================================================

POLL_INTERVAL_SECONDS = 2.0
# Why 2s: pages are produced by remote crawlers at human-scale rates. Polling
# faster mostly returns empty pages and burns the service's request quota.

DATA_PATH_TEMPLATE = "/crawlers/{crawler_id}/data"

# =============================================================================
# HTTP Pool
# =============================================================================

HTTP_POOL_LIMIT = 20
# Why 20: one in-flight request per connection loop. 20 covers typical
# fan-out (a handful of crawler/parser pairs) with room for token calls.

HTTP_DNS_CACHE_SECONDS = 300
# Why 300: the service host rarely changes; 5 minutes avoids a DNS lookup on
# every page while still picking up failovers.
