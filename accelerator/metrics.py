from prometheus_client import Counter, Gauge, Info

CACHE_HITS = Counter(
    "cosmos_accelerator_cache_hits_total", "abci_query requests served from cache"
)
CACHE_MISSES = Counter(
    "cosmos_accelerator_cache_misses_total",
    "abci_query requests forwarded because of a cache miss",
)
UPSTREAM_HEIGHT = Gauge(
    "cosmos_accelerator_upstream_height",
    "Last block height observed on the upstream node, -1 when unknown",
)
CACHE_ENTRIES = Gauge(
    "cosmos_accelerator_cache_entries", "Number of cached abci_query responses"
)
APP_INFO = Info("cosmos_accelerator_app", "Application Info")
