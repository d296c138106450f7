"""Core constants: cache key structure, hook names, and shared literal values.

Single source of truth for cache key structure (DRY). Used by the cache
managers, the entity store, and the authorization resolver.
"""

# Delimiter for composite keys
CACHE_KEY_SEP = ":"

# Upper bound for derived keys (object-cache backends reject longer keys)
CACHE_KEY_MAX_LENGTH = 172

# Prefix used when every key component is empty
CACHE_KEY_DEFAULT_PREFIX = "default"

# Logical key types shared by every entity cache
CACHE_KEY_TYPE_PAGED = "paged"
CACHE_KEY_TYPE_LIST = "list"
CACHE_KEY_TYPE_STATS = "stats"

# Access-decision cache (authorization resolver)
CACHE_NAMESPACE_ACCESS = "access"
CACHE_KEY_TYPE_RELATION = "relation"
CACHE_KEY_TYPE_GRANT = "grant"

# Extension hook events (full name is "<entity>.<event>")
HOOK_BEFORE_INSERT = "beforeInsert"
HOOK_CREATED = "created"
HOOK_UPDATED = "updated"
HOOK_DELETED = "deleted"

# Default subscriber priority (lower runs first)
DEFAULT_HOOK_PRIORITY = 10

# Field on create() input that carries a caller-chosen primary key for seeding
STATIC_ID_FIELD = "_static_id"

# Pagination bounds for list views
PAGE_LIMIT_DEFAULT = 10
PAGE_LIMIT_MAX = 500
