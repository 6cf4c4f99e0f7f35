"""
Batch sizing policy.

The unit of concurrency is one invocation (one row x task pair). A row with
N tasks consumes N slots of the budget, so fewer rows fit per batch as the
task count grows. The inter-batch delay is a fixed cooldown: it does not
react to throttling signals from the provider.
"""

from typing import Optional


# Concurrent invocations per batch for each quality tier
THINKING_CONCURRENCY = 2
FAST_CONCURRENCY = 10

# Cooldown between batches (seconds)
THINKING_BATCH_DELAY_SECONDS = 4.0
FAST_BATCH_DELAY_SECONDS = 2.0


def concurrency_budget(use_thinking_model: bool) -> int:
    return THINKING_CONCURRENCY if use_thinking_model else FAST_CONCURRENCY


def plan_batch_size(tasks_per_row: int, use_thinking_model: bool) -> int:
    """
    Number of rows per batch.

    Args:
        tasks_per_row: Research tasks fired for each row (>= 1)
        use_thinking_model: Whether the slower, higher quality tier is used

    Returns:
        max(1, budget // tasks_per_row)
    """
    if tasks_per_row < 1:
        raise ValueError(f"tasks_per_row must be >= 1, got {tasks_per_row}")
    return max(1, concurrency_budget(use_thinking_model) // tasks_per_row)


def effective_row_count(table_size: int, row_limit: Optional[int] = None) -> int:
    """Rows to process: the table size, capped by a positive row limit."""
    if row_limit is not None and row_limit > 0:
        return min(table_size, row_limit)
    return table_size


def inter_batch_delay(use_thinking_model: bool) -> float:
    """Seconds to wait after every batch except the last."""
    return THINKING_BATCH_DELAY_SECONDS if use_thinking_model else FAST_BATCH_DELAY_SECONDS
