"""
Hard-coded constants for filter, sort and pagination handling.

These values are part of the URL and storage contract of listing pages
(query parameter names, slug format, session key prefixes) and are not
meant to be configured per deployment.

For configurable values (database, Redis, logging, defaults) see
listing_filters/settings.py.
"""

# ============================================================================
# Slugs
# ============================================================================

# Stored slugs are always exactly this long (CHAR(14) column)
SLUG_LENGTH = 14

# Lowercase letters without the ambiguous "j" and "l"
SLUG_ALPHABET = "abcdefghikmnopqrstuvwxyz"

# Upper bound on regeneration attempts when a candidate slug is taken
MAX_SLUG_GENERATION_ATTEMPTS = 100

# Route parameter carrying the slug of the active filter combination
SLUG_ROUTE_PARAM = "slugged_filter"


# ============================================================================
# Query parameters
# ============================================================================

SORT_FIELD_PARAM = "s"
SORT_DIR_PARAM = "d"
PAGE_PARAM = "p"
LIMIT_PARAM = "l"


# ============================================================================
# Sorting
# ============================================================================

SORT_ASC = "asc"
SORT_DESC = "desc"
SORT_DIRECTIONS = (SORT_ASC, SORT_DESC)

# Placeholder replaced by the direction inside custom order expressions
SORT_DIR_PLACEHOLDER = ":dir"


# ============================================================================
# Session keys
# ============================================================================

FILTER_SESSION_PREFIX = "FILTER_"
LIMIT_SESSION_PREFIX = "LIMIT_"

# Key under which the slug is remembered inside a FILTER_* entry
SESSION_SLUG_KEY = "slug"
