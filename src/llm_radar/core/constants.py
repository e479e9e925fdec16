"""Global constants for LLM Radar.

Centralizes magic numbers used throughout the codebase,
making them discoverable, consistent, and easy to modify.
"""

# =============================================================================
# Probe Execution
# =============================================================================

TIMEOUT_EXIT_CODE = 124
"""Exit code reported when a probe was killed because its deadline elapsed."""

START_FAILURE_EXIT_CODE = 1
"""Exit code reported when the probe process could not be spawned."""

SIGNAL_EXIT_CODE_BASE = 128
"""A probe killed by signal N reports exit code 128 + N."""

DEFAULT_PROBE_COMMAND = "opencode"
"""Command used to probe models and discover them."""

DEFAULT_PROMPT = "Reply with only: 2, 3, 5"
"""Prompt sent to every model. The default success pattern matches its answer."""

DEFAULT_TIMEOUT_SECONDS = 20.0
"""Per-attempt probe deadline."""

DISCOVERY_TIMEOUT_SECONDS = 60.0
"""Deadline for `<probe> models` and `<probe> models --refresh`."""

# =============================================================================
# Retry / Scheduling
# =============================================================================

DEFAULT_RETRIES = 1
"""Extra attempts after the first one."""

RETRY_BACKOFF_STEP_SECONDS = 0.5
"""Linear backoff unit: attempt N (0-based) waits (N + 1) * step after a rate limit."""

WORKER_STAGGER_SECONDS = 0.2
"""Worker i waits i * stagger before taking its first job."""

MIN_AUTO_CONCURRENCY = 2
MAX_AUTO_CONCURRENCY = 8

DEFAULT_EVENT_BUFFER_SIZE = 100
"""Capacity of the event stream between workers and the consumer."""

# =============================================================================
# Output Capture
# =============================================================================

DEFAULT_MAX_OUTPUT_KB = 64
"""Byte budget (in KiB) for a captured probe output kept in a result."""

TRIM_KEEP_RATIO = 0.4
"""Share of the budget kept from each end of an oversized output."""

TRUNCATION_MARKER = "\n\n...[TRUNCATED]...\n\n"

# =============================================================================
# Models / Providers
# =============================================================================

FREE_SUFFIX = "-free"
"""Identifiers ending with this suffix are treated as free models."""

DISCOUNT_PROVIDER_PREFIX = "zai-coding-plan/"
"""Models with this prefix are probed right after the known free ones."""

MODEL_ID_PATTERN = r"^[A-Za-z0-9_-]+/[A-Za-z0-9._-]+$"
"""Shape of a discoverable `provider/model-name` identifier."""

# =============================================================================
# Cache
# =============================================================================

CACHE_TTL_HOURS = 24
"""Lifetime of a cached classification."""
