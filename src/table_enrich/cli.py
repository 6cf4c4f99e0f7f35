"""
CLI interface for table enrichment.

Provides command-line access to research a CSV/Excel table row by row and
write the answers into new columns.
"""

import argparse
import asyncio
import logging
import signal
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .clients import BaseResearcher, GeminiResearcher, suggest_research_config
from .config import load_research_config
from .entity import resolve_entity
from .exceptions import ConfigError, TableEnrichError
from .models import ResearchConfig, ResearchTask, Table
from .orchestrator import ResearchSession, RunStats
from .planner import effective_row_count, inter_batch_delay, plan_batch_size
from .presets import PRESETS, get_preset
from .tables import export_table, load_table
from .utils.file_utils import write_provenance
from .utils.logger import configure_logging
from .utils.progress import ProgressDisplay

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    configure_logging("table_enrich", level=logging.DEBUG if verbose else None)


def parse_task_spec(spec: str) -> ResearchTask:
    """Parse 'Column Name=prompt text' into a task."""
    name, sep, prompt = spec.partition("=")
    if not sep or not name.strip() or not prompt.strip():
        raise ConfigError([f"Invalid task '{spec}', expected NAME=PROMPT"])
    return ResearchTask(new_column_name=name.strip(), prompt=prompt.strip())


@dataclass
class EnrichOptions:
    """Options collected from the command line."""
    input_path: Path
    output_path: Optional[Path] = None
    sources_path: Optional[Path] = None
    config_file: Optional[Path] = None
    identity: List[str] = field(default_factory=list)
    tasks: List[str] = field(default_factory=list)
    presets: List[str] = field(default_factory=list)
    ask: Optional[str] = None
    thinking: bool = False
    limit: Optional[int] = None
    dedupe: List[str] = field(default_factory=list)
    filter: Optional[List[str]] = None
    dry_run: bool = False
    verbose: bool = False


async def build_config(
    options: EnrichOptions,
    columns: Sequence[str],
    ask_fn=suggest_research_config,
) -> ResearchConfig:
    """
    Merge the config file, explicit flags, presets and assistant suggestions.

    Explicit identity columns win over the config file and the assistant;
    tasks from every source are appended in that order.
    """
    if options.config_file:
        config = load_research_config(options.config_file)
    else:
        config = ResearchConfig(target_columns=[], tasks=[])

    if options.ask:
        suggestion = await ask_fn(options.ask, list(columns), use_pro_model=options.thinking)
        if suggestion.is_empty:
            logger.warning("Assistant returned no suggestion")
        else:
            logger.info(
                f"Assistant suggested identity {suggestion.target_columns} and "
                f"{len(suggestion.tasks)} tasks: {[t.new_column_name for t in suggestion.tasks]}"
            )
        if suggestion.target_columns and not config.target_columns:
            config.target_columns = list(suggestion.target_columns)
        config.tasks.extend(suggestion.tasks)

    if options.identity:
        config.target_columns = list(options.identity)

    config.tasks.extend(get_preset(p).to_task() for p in options.presets)
    config.tasks.extend(parse_task_spec(t) for t in options.tasks)

    if options.thinking:
        config.use_thinking_model = True
    if options.limit is not None:
        config.row_limit = options.limit

    return config


def print_dry_run(table: Table, config: ResearchConfig) -> None:
    """Preview what a run would do without calling the provider."""
    total = effective_row_count(len(table), config.row_limit)
    batch_size = plan_batch_size(len(config.tasks), config.use_thinking_model)

    print("\n=== DRY RUN ===")
    print(f"Identity columns: {config.target_columns}")
    print("Tasks:")
    for task in config.tasks:
        print(f"  {task.new_column_name}: {task.prompt}")
    print(f"Rows:             {total} of {len(table)}")
    print(f"Batch size:       {batch_size} rows ({batch_size * len(config.tasks)} calls)")
    print(f"Batch delay:      {inter_batch_delay(config.use_thinking_model):.0f}s")
    print(f"Tier:             {'thinking' if config.use_thinking_model else 'fast'}")

    print("\n--- Sample rows ---")
    for index, row in enumerate(table.rows[:3]):
        subject, context = resolve_entity(row, config, table.columns)
        label = subject if subject else "(skipped: empty subject)"
        print(f"  [{index}] {label}")
        if context:
            print(f"      context: {context[:200]}")


def print_summary(stats: RunStats, output_path: Path, sources_path: Optional[Path]) -> None:
    print("\n=== Enrichment Summary ===")
    print(f"Total rows:     {stats.total_rows}")
    print(f"Processed:      {stats.processed_rows}")
    print(f"Skipped:        {stats.skipped_rows}")
    print(f"Calls:          {stats.invocations}")
    print(f"Errors:         {stats.error_cells}")
    print(f"Not found:      {stats.not_found_cells}")
    if stats.cancelled:
        print("Status:         cancelled")
    print(f"Output:         {output_path}")
    if sources_path:
        print(f"Sources:        {sources_path}")


def _install_signal_handlers(session: ResearchSession) -> List[int]:
    """SIGINT cancels cooperatively; SIGUSR1 toggles pause. Returns installed signals."""
    loop = asyncio.get_running_loop()

    def toggle_pause():
        if session.control.paused:
            session.resume()
        else:
            session.pause()

    handlers = [(signal.SIGINT, session.cancel)]
    if hasattr(signal, "SIGUSR1"):
        handlers.append((signal.SIGUSR1, toggle_pause))

    installed = []
    for sig, handler in handlers:
        try:
            loop.add_signal_handler(sig, handler)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            logger.debug(f"Signal {sig} not supported on this platform")
    return installed


async def run_enrich(
    options: EnrichOptions,
    researcher: Optional[BaseResearcher] = None,
    ask_fn=suggest_research_config,
) -> Optional[RunStats]:
    """
    Run research enrichment on a table file.

    Returns:
        RunStats, or None for a dry run
    """
    table = load_table(options.input_path)
    researcher = researcher or GeminiResearcher()
    session = ResearchSession(researcher, table)

    if options.dedupe:
        removed = session.remove_duplicates(options.dedupe)
        logger.info(f"Removed {removed} duplicate rows on {options.dedupe}")
    if options.filter:
        column, operator, *value = options.filter
        remaining = session.apply_filter(column, operator, value[0] if value else "")
        logger.info(f"Filter {column} {operator} kept {remaining} rows")

    config = await build_config(options, session.table.columns, ask_fn=ask_fn)
    errors = config.validate(session.table.columns)
    if errors:
        raise ConfigError(errors)

    if options.dry_run:
        print_dry_run(session.table, config)
        return None

    display = ProgressDisplay(verbose=options.verbose)
    session.add_listener(display.update)

    installed = _install_signal_handlers(session)
    try:
        stats = await session.run(config)
    finally:
        session.remove_listener(display.update)
        loop = asyncio.get_running_loop()
        for sig in installed:
            loop.remove_signal_handler(sig)

    output_path = options.output_path or options.input_path.with_name(
        f"{options.input_path.stem}_enriched.csv"
    )
    export_table(session.table, output_path)
    if options.sources_path:
        write_provenance(options.sources_path, session.provenance)
        logger.info(f"Saved {len(session.provenance)} cell sources to {options.sources_path}")

    print_summary(stats, output_path, options.sources_path)
    return stats


def build_parser() -> argparse.ArgumentParser:
    preset_help = ", ".join(p.id for p in PRESETS)
    parser = argparse.ArgumentParser(
        prog="table-enrich",
        description="Research each row of a CSV/Excel table and add the answers as new columns",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Two research columns keyed on the Company column
  table-enrich companies.csv --identity Company \\
      --task "CEO=Who is the current CEO? Return just the name." --preset headquarters

  # Composite identity, thinking tier, first 20 rows, Excel output with sources
  table-enrich people.xlsx --identity "First Name" "Last Name" --preset linkedin_summary \\
      --thinking --limit 20 --output people_enriched.xlsx --sources sources.json

  # Let the assistant draft the configuration, then preview it
  table-enrich leads.csv --ask "find each company's website and revenue" --dry-run

While running: Ctrl+C cancels after the current batch, `kill -USR1 <pid>` pauses/resumes.
""",
    )

    parser.add_argument("input_path", type=Path, help="Input CSV or Excel file")
    parser.add_argument("--identity", nargs="+", default=[], metavar="COLUMN",
                        help="Column(s) identifying the subject of each row")
    parser.add_argument("--task", action="append", default=[], dest="tasks", metavar="NAME=PROMPT",
                        help="Research task producing column NAME (repeatable)")
    parser.add_argument("--preset", action="append", default=[], dest="presets", metavar="ID",
                        help=f"Add a preset task (repeatable): {preset_help}")
    parser.add_argument("--config", type=Path, dest="config_file",
                        help="JSON research configuration file")
    parser.add_argument("--ask", type=str,
                        help="Natural language request for the configuration assistant")
    parser.add_argument("--thinking", action="store_true",
                        help="Use the slower, higher quality thinking model")
    parser.add_argument("--limit", type=int, help="Max rows to process")
    parser.add_argument("--output", type=Path, dest="output_path",
                        help="Output .csv or .xlsx (default: input_enriched.csv)")
    parser.add_argument("--sources", type=Path, dest="sources_path",
                        help="Write per-cell sources as JSON")
    parser.add_argument("--dedupe", nargs="+", default=[], metavar="COLUMN",
                        help="Remove duplicate rows keyed on these columns first")
    parser.add_argument("--filter", nargs="+", metavar="ARG",
                        help="Keep rows matching COLUMN OPERATOR [VALUE] first")
    parser.add_argument("--dry-run", action="store_true",
                        help="Preview configuration and sample rows without processing")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.filter and not 2 <= len(args.filter) <= 3:
        parser.error("--filter expects COLUMN OPERATOR [VALUE]")

    options = EnrichOptions(
        input_path=args.input_path,
        output_path=args.output_path,
        sources_path=args.sources_path,
        config_file=args.config_file,
        identity=args.identity,
        tasks=args.tasks,
        presets=args.presets,
        ask=args.ask,
        thinking=args.thinking,
        limit=args.limit,
        dedupe=args.dedupe,
        filter=args.filter,
        dry_run=args.dry_run,
        verbose=args.verbose,
    )

    try:
        asyncio.run(run_enrich(options))
    except (TableEnrichError, KeyError, ValueError) as e:
        logging.getLogger(__name__).error(f"Enrichment failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
