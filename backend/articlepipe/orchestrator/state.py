"""State machine constants and transition logic for the article pipeline.

An article moves strictly forward through its lifecycle; ``ready`` and
``failed`` are terminal.
"""

from typing import Dict, FrozenSet

QUEUED = "queued"
PROCESSING = "processing"
READY = "ready"
FAILED = "failed"

# Article states in lifecycle order
ARTICLE_STATES = {
    QUEUED: "Created, waiting for a pipeline worker",
    PROCESSING: "Pipeline stages are running",
    READY: "Every critical stage succeeded",
    FAILED: "A critical stage failed; see error_message",
}

TERMINAL_STATES: FrozenSet[str] = frozenset({READY, FAILED})

# Allowed forward transitions
TRANSITIONS: Dict[str, FrozenSet[str]] = {
    QUEUED: frozenset({PROCESSING}),
    PROCESSING: frozenset({READY, FAILED}),
    READY: frozenset(),
    FAILED: frozenset(),
}


def is_terminal(status: str) -> bool:
    """Return True if no transition leaves ``status``."""
    return status in TERMINAL_STATES


def can_transition(current: str, new: str) -> bool:
    """Check whether ``current -> new`` is a legal lifecycle step.

    Re-applying the current status is always accepted; the write is then
    idempotent apart from the modification timestamp.

    Args:
        current: Status currently stored on the article
        new: Status the caller wants to write

    Returns:
        True if the write is allowed, False otherwise

    Examples:
        >>> can_transition("queued", "processing")
        True
        >>> can_transition("ready", "processing")
        False
        >>> can_transition("failed", "failed")
        True
    """
    if new not in ARTICLE_STATES:
        return False
    if current == new:
        return True
    return new in TRANSITIONS.get(current, frozenset())
