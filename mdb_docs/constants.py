"""
Constants for MDB_DOCS.

Shared defaults and lookup tables used across the package.
"""

from typing import Final

# ============================================================================
# DATABASE CONSTANTS
# ============================================================================

DEFAULT_MAX_POOL_SIZE: Final[int] = 50
"""Default maximum MongoDB connection pool size."""

DEFAULT_MIN_POOL_SIZE: Final[int] = 10
"""Default minimum MongoDB connection pool size."""

DEFAULT_SERVER_SELECTION_TIMEOUT_MS: Final[int] = 5000
"""Default server selection timeout in milliseconds."""

DEFAULT_MAX_IDLE_TIME_MS: Final[int] = 45000
"""Default maximum idle time before closing connections (milliseconds)."""

# ============================================================================
# REFERENCE HYDRATION
# ============================================================================

DANGLING_KEEP: Final[str] = "keep"
"""Leave a reference to a missing document unresolved."""

DANGLING_RAISE: Final[str] = "raise"
"""Fail the read when a reference points to a missing document."""

DANGLING_REFERENCE_POLICIES: Final[tuple[str, ...]] = (DANGLING_KEEP, DANGLING_RAISE)

DEFAULT_DANGLING_REFERENCE_POLICY: Final[str] = DANGLING_KEEP

# ============================================================================
# QUERY CONSTANTS
# ============================================================================

ID_FIELD: Final[str] = "id"
"""Entity-side identity field name."""

MONGO_ID_FIELD: Final[str] = "_id"
"""Store-side identity field name."""

COMPARISON_OPERATORS: Final[dict[str, str]] = {
    "<": "$lt",
    "<=": "$lte",
    "==": "$eq",
    "!=": "$ne",
    ">=": "$gte",
    ">": "$gt",
    "array-contains": "$elemMatch",
    "array-contains-any": "$elemMatch",
    "in": "$in",
    "not-in": "$nin",
}
"""
Predicate operators and the MongoDB operator each one translates to. The array
operators only match array fields: they wrap $eq / $in in $elemMatch.
"""

LIST_OPERATORS: Final[tuple[str, ...]] = ("in", "not-in", "array-contains-any")
"""Operators whose comparison value must be a list."""
