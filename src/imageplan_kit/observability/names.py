# src/imageplan_kit/observability/names.py

"""Standard metric names for imageplan-kit observability.

Use these constants instead of hardcoded strings for consistency
across the codebase.

Note: All duration metrics are in milliseconds by convention.
Units are handled by the metrics backend (e.g., converted to seconds in Prometheus).
"""

# ============================================================================
# LLM Metrics
# ============================================================================

# Duration
LLM_COMPLETION_DURATION = "llm_completion_duration"
LLM_STREAM_DURATION = "llm_stream_duration"

# Counters
LLM_REQUESTS_TOTAL = "llm_requests_total"
LLM_STREAM_CHUNKS_TOTAL = "llm_stream_chunks_total"

# Counters (token usage - monotonic over time for cost/rate tracking)
LLM_TOKENS_PROMPT = "llm_tokens_prompt"
LLM_TOKENS_COMPLETION = "llm_tokens_completion"
LLM_TOKENS_TOTAL = "llm_tokens_total"


# ============================================================================
# Stream Parser Metrics
# ============================================================================

# Counters
STREAM_ITEMS_EMITTED = "stream_items_emitted"
STREAM_DUPLICATES_SUPPRESSED = "stream_duplicates_suppressed"
STREAM_MALFORMED_ELEMENTS = "stream_malformed_elements"
STREAM_FINAL_PARSE_FALLBACKS = "stream_final_parse_fallbacks"


# ============================================================================
# Placement Metrics
# ============================================================================

# Duration
PLACEMENT_APPLY_DURATION = "placement_apply_duration"

# Counters
PLACEMENT_INSERTIONS_TOTAL = "placement_insertions_total"
PLACEMENT_FALLBACKS_TOTAL = "placement_fallbacks_total"


# ============================================================================
# Planning Metrics
# ============================================================================

# Duration
PLANNING_DURATION = "planning_duration"
IMAGE_GENERATION_DURATION = "image_generation_duration"

# Counters
PLANNING_PLANS_TOTAL = "planning_plans_total"
PLANNING_INVALID_PLANS = "planning_invalid_plans"
IMAGE_GENERATION_ERRORS_TOTAL = "image_generation_errors_total"
