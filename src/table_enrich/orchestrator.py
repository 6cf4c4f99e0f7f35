"""
Batch research orchestration.

Runs every (row x task) research invocation for a table in bounded batches:
each batch is fired concurrently, awaited as a whole, merged into a new
table snapshot and published once. Between batches the loop honours
pause/cancel requests and sleeps a fixed cooldown.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from .clients.base import BaseResearcher
from .entity import resolve_entity
from .exceptions import ConfigError, RunInProgressError
from .models import (
    ERROR_TEXT,
    NOT_FOUND_TEXT,
    ResearchConfig,
    ResearchResult,
    ResearchTask,
    RunProgress,
    RunState,
    Table,
)
from .planner import effective_row_count, inter_batch_delay, plan_batch_size
from .provenance import ProvenanceMap
from .run_control import RunControl
from . import tables

logger = logging.getLogger(__name__)

ProgressListener = Callable[[RunProgress], None]
SleepFn = Callable[[float], Awaitable[None]]


@dataclass
class RunStats:
    """Statistics for a research run."""
    total_rows: int = 0
    processed_rows: int = 0
    skipped_rows: int = 0  # rows with an empty subject
    invocations: int = 0
    error_cells: int = 0
    not_found_cells: int = 0
    batches: int = 0
    cancelled: bool = False
    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None

    @property
    def elapsed(self) -> float:
        return (self.end_time or time.time()) - self.start_time


class ResearchSession:
    """
    Owns one table, its provenance and the run state machine.

    Idle -> Processing -> (Paused <-> Processing) -> Completed, with cancel
    returning Processing or Paused to Idle. Only one run may be active.
    """

    def __init__(
        self,
        researcher: BaseResearcher,
        table: Optional[Table] = None,
        sleep: SleepFn = asyncio.sleep,
        batch_delay: Optional[float] = None,
    ):
        """
        Args:
            researcher: Invoker answering each (subject, task) question
            table: Initial table (empty if omitted)
            sleep: Coroutine used for the inter-batch cooldown
            batch_delay: Override for the cooldown in seconds (None = tier policy)
        """
        self.researcher = researcher
        self.control = RunControl()
        self.provenance = ProvenanceMap()
        self._sleep = sleep
        self._batch_delay = batch_delay
        self._listeners: List[ProgressListener] = []

        self._table = table if table is not None else Table()
        self._original = self._table
        self.state = RunState.IDLE
        self.processed_count = 0
        self.effective_total = len(self._table)
        self.active_config: Optional[ResearchConfig] = None
        self.last_stats: Optional[RunStats] = None

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def table(self) -> Table:
        """Latest published snapshot."""
        return self._table

    @property
    def progress(self) -> RunProgress:
        return RunProgress(self.processed_count, self.effective_total, self.state)

    @property
    def is_running(self) -> bool:
        return self.state in (RunState.PROCESSING, RunState.PAUSED)

    def add_listener(self, listener: ProgressListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ProgressListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        progress = self.progress
        for listener in list(self._listeners):
            listener(progress)

    def _publish(self, table: Table) -> None:
        self._table = table
        self._notify()

    # ------------------------------------------------------------------
    # Table management
    # ------------------------------------------------------------------

    def _ensure_idle(self, action: str) -> None:
        if self.is_running:
            raise RunInProgressError(f"Cannot {action} while a run is {self.state.value.lower()}")

    def load_table(self, table: Table) -> None:
        """Install a freshly imported table, discarding run state and provenance."""
        self._ensure_idle("load a table")
        self._original = table
        self._reset_run_state(len(table))
        self._publish(table)

    def clear(self) -> None:
        self.load_table(Table())

    def _reset_run_state(self, total: int) -> None:
        self.state = RunState.IDLE
        self.processed_count = 0
        self.effective_total = total
        self.active_config = None
        self.provenance.clear()

    def update_cell(self, row_index: int, column: str, value: str) -> None:
        """Manual edit of a single cell."""
        self._ensure_idle("edit cells")
        if column not in self._table.columns:
            raise KeyError(f"Unknown column: {column}")
        if not 0 <= row_index < len(self._table):
            raise IndexError(f"Row index {row_index} out of range for {len(self._table)} rows")
        rows = list(self._table.rows)
        rows[row_index] = rows[row_index].with_values({column: value})
        self._publish(self._table.with_rows(rows))

    def apply_filter(self, column: str, operator: str, value: str = "") -> int:
        """Filter the current table. Returns the number of remaining rows."""
        self._ensure_idle("filter")
        filtered = tables.filter_rows(self._table, column, operator, value)
        self._reset_run_state(len(filtered))
        self._publish(filtered)
        return len(filtered)

    def reset_filter(self) -> None:
        """Revert to the table as originally loaded."""
        self._ensure_idle("reset the filter")
        self._reset_run_state(len(self._original))
        self._publish(self._original)

    def remove_duplicates(self, columns: List[str]) -> int:
        """Drop repeated rows keyed on `columns`. Returns the number removed."""
        self._ensure_idle("remove duplicates")
        deduped = tables.remove_duplicates(self._table, columns)
        removed = len(self._table) - len(deduped)
        if removed:
            self._reset_run_state(len(deduped))
            self._publish(deduped)
        return removed

    # ------------------------------------------------------------------
    # Run control surface
    # ------------------------------------------------------------------

    def pause(self) -> None:
        if self.state != RunState.PROCESSING:
            return
        self.control.pause()
        self.state = RunState.PAUSED
        logger.info(f"Pause requested at {self.processed_count}/{self.effective_total}")
        self._notify()

    def resume(self) -> None:
        if self.state != RunState.PAUSED:
            return
        self.control.resume()
        self.state = RunState.PROCESSING
        logger.info("Resumed")
        self._notify()

    def cancel(self) -> None:
        """Stop before the next batch. A batch already in flight still completes."""
        if not self.is_running:
            return
        self.control.cancel()
        self.state = RunState.IDLE
        logger.info(f"Cancel requested at {self.processed_count}/{self.effective_total}")
        self._notify()

    def start(self, config: ResearchConfig) -> "asyncio.Task[RunStats]":
        """
        Validate and schedule a run on the running event loop.

        Configuration errors and an already active run are raised here,
        before anything is scheduled.
        """
        stats = self._prepare(config)
        return asyncio.get_running_loop().create_task(self._execute(config, stats))

    async def run(self, config: ResearchConfig) -> RunStats:
        """Run to completion (or cancellation) and return statistics."""
        stats = self._prepare(config)
        return await self._execute(config, stats)

    # ------------------------------------------------------------------
    # Orchestration loop
    # ------------------------------------------------------------------

    def _prepare(self, config: ResearchConfig) -> RunStats:
        self._ensure_idle("start a run")
        self.control.reset()
        self.active_config = None
        stats = RunStats(total_rows=len(self._table))
        if self._table.is_empty:
            return stats

        errors = config.validate(self._table.columns) + self.researcher.validate()
        if errors:
            raise ConfigError(errors)

        self.state = RunState.PROCESSING
        self.active_config = config
        self.processed_count = 0
        self.effective_total = effective_row_count(len(self._table), config.row_limit)
        return stats

    async def _execute(self, config: ResearchConfig, stats: RunStats) -> RunStats:
        self.last_stats = stats
        if self.active_config is None:
            # Nothing to process
            stats.end_time = time.time()
            return stats
        if self.control.cancelled:
            return self._stop_cancelled(stats)

        try:
            return await self._process_batches(config, stats)
        finally:
            if self.is_running:
                # Task cancelled or a listener raised: release the session
                logger.warning(f"Run aborted at {self.processed_count}/{self.effective_total}")
                self.control.cancel()
                self.state = RunState.IDLE
                stats.cancelled = True
                stats.end_time = time.time()

    async def _process_batches(self, config: ResearchConfig, stats: RunStats) -> RunStats:
        table = self._table.with_columns(config.output_columns)
        total = self.effective_total
        batch_size = plan_batch_size(len(config.tasks), config.use_thinking_model)
        delay = self._batch_delay if self._batch_delay is not None else inter_batch_delay(config.use_thinking_model)
        total_batches = (total + batch_size - 1) // batch_size

        logger.info(
            f"Research run: {total} rows x {len(config.tasks)} tasks, "
            f"batch size {batch_size}, {total_batches} batches, "
            f"{'thinking' if config.use_thinking_model else 'fast'} tier"
        )
        self._publish(table)

        for start in range(0, total, batch_size):
            if self.control.cancelled:
                return self._stop_cancelled(stats)

            if self.control.paused:
                await self.control.wait_for_resume()
                if self.control.cancelled:
                    return self._stop_cancelled(stats)

            end = min(start + batch_size, total)
            batch_num = start // batch_size + 1
            logger.info(f"Processing batch {batch_num}/{total_batches} (rows {start}-{end - 1})")

            table = await self._run_batch(table, config, start, end, stats)
            stats.batches += 1
            stats.processed_rows = end
            self.processed_count = end
            self._publish(table)

            if end < total:
                await self._sleep(delay)

        if self.control.cancelled:
            return self._stop_cancelled(stats)

        # A pause requested during the final batch has nothing left to hold
        self.control.reset()
        self.state = RunState.COMPLETED
        stats.end_time = time.time()
        logger.info(
            f"Research complete: {stats.processed_rows} rows, {stats.invocations} calls, "
            f"{stats.skipped_rows} skipped, {stats.error_cells} errors, "
            f"{stats.not_found_cells} not found, {stats.elapsed:.1f}s"
        )
        self._notify()
        return stats

    def _stop_cancelled(self, stats: RunStats) -> RunStats:
        # State was already forced to Idle by cancel() and must stay there.
        stats.cancelled = True
        stats.end_time = time.time()
        logger.info(f"Run cancelled after {self.processed_count}/{self.effective_total} rows")
        return stats

    async def _run_batch(
        self,
        table: Table,
        config: ResearchConfig,
        start: int,
        end: int,
        stats: RunStats,
    ) -> Table:
        """Fire every invocation for rows [start, end), await all, merge into a new table."""
        targets: List[Tuple[int, ResearchTask]] = []
        calls = []

        for row_index in range(start, end):
            subject, context = resolve_entity(table.rows[row_index], config, table.columns)
            if not subject:
                stats.skipped_rows += 1
                logger.debug(f"SKIP: row {row_index} has an empty subject")
                continue
            for task in config.tasks:
                targets.append((row_index, task))
                calls.append(self._invoke(subject, task, context, config.use_thinking_model))

        if not calls:
            return table

        results = await asyncio.gather(*calls)
        stats.invocations += len(results)

        updates: Dict[int, Dict[str, str]] = {}
        new_sources = {}
        for (row_index, task), result in zip(targets, results):
            column = task.new_column_name
            updates.setdefault(row_index, {})[column] = result.text
            if result.sources:
                new_sources[(row_index, column)] = result.sources
            if result.text == ERROR_TEXT:
                stats.error_cells += 1
            elif result.text == NOT_FOUND_TEXT:
                stats.not_found_cells += 1

        rows = list(table.rows)
        for row_index, cells in updates.items():
            rows[row_index] = rows[row_index].with_values(cells)
        self.provenance.update(new_sources)
        return table.with_rows(rows)

    async def _invoke(
        self,
        subject: str,
        task: ResearchTask,
        context: str,
        use_high_quality: bool,
    ) -> ResearchResult:
        """Call the researcher, degrading any failure to the error sentinel."""
        try:
            return await self.researcher.research(subject, task.prompt, context, use_high_quality)
        except Exception as e:
            logger.warning(f"Research failed for '{subject}' [{task.new_column_name}]: {e}")
            return ResearchResult.error()
