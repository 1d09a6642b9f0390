"""
Utility modules for git-notifier.
"""

from notifier.utils.logging import (
    get_logger,
    setup_logging,
    LogContext,
    log_repository_event,
    log_stage_transition,
    log_git_command,
    log_error_with_context,
)
from notifier.utils.metrics import (
    PollMetrics,
    track_git_command,
    emit_metric,
)
from notifier.utils.resilience import (
    backoff_delay,
    retry_with_backoff,
    handle_partial_failure,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "LogContext",
    "log_repository_event",
    "log_stage_transition",
    "log_git_command",
    "log_error_with_context",
    "PollMetrics",
    "track_git_command",
    "emit_metric",
    "backoff_delay",
    "retry_with_backoff",
    "handle_partial_failure",
]
