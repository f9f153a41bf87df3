# src/note_kit/observability/names.py

"""Standard metric names for note-kit observability.

Use these constants instead of hardcoded strings for consistency
across the codebase.

Note: All duration metrics are in milliseconds by convention.
Units are handled by the metrics backend (e.g., converted to seconds in Prometheus).
"""

# ============================================================================
# Chunking Metrics
# ============================================================================

# Duration
CHUNKING_DURATION = "chunking_duration"

# Counters (chunks accumulate over time)
CHUNKING_CHUNKS_CREATED = "chunking_chunks_created"
CHUNKING_BLOCKS_DROPPED = "chunking_blocks_dropped"
CHUNKING_CHUNKS_TRUNCATED = "chunking_chunks_truncated"
CHUNKING_FALLBACKS_TOTAL = "chunking_fallbacks_total"


# ============================================================================
# Sync Metrics
# ============================================================================

# Duration
SYNC_DURATION = "sync_duration"

# Counters (labelled by classification / operation)
SYNC_ITEMS_TOTAL = "sync_items_total"
SYNC_ERRORS_TOTAL = "sync_errors_total"
SYNC_BASELINE_ANOMALIES = "sync_baseline_anomalies"


# ============================================================================
# Embeddings Metrics
# ============================================================================

# Duration
EMBEDDINGS_DURATION = "embeddings_duration"

# Counters
EMBEDDINGS_REQUESTS_TOTAL = "embeddings_requests_total"
EMBEDDINGS_ERRORS_TOTAL = "embeddings_errors_total"
EMBEDDINGS_WINDOWED_TOTAL = "embeddings_windowed_total"


# ============================================================================
# Vector Store Metrics (Qdrant)
# ============================================================================

# Duration
QDRANT_UPSERT_DURATION = "qdrant_upsert_duration"
QDRANT_QUERY_DURATION = "qdrant_query_duration"
QDRANT_DELETE_DURATION = "qdrant_delete_duration"
QDRANT_SCROLL_DURATION = "qdrant_scroll_duration"

# Counters
QDRANT_OPERATIONS_TOTAL = "qdrant_operations_total"


# ============================================================================
# Vector Store Metrics (SQLite)
# ============================================================================

# Duration
SQLITE_UPSERT_DURATION = "sqlite_upsert_duration"
SQLITE_QUERY_DURATION = "sqlite_query_duration"
SQLITE_DELETE_DURATION = "sqlite_delete_duration"
SQLITE_SCROLL_DURATION = "sqlite_scroll_duration"

# Counters
SQLITE_OPERATIONS_TOTAL = "sqlite_operations_total"
