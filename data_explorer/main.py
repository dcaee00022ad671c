"""Entry point for the data explorer.

Run this module as a script (or the ``data-explorer`` console script) to
start an interactive command-line session.  The dataset can be supplied
with ``--data`` or the ``DATA_EXPLORER_DATA_PATH`` environment variable;
``--sample`` loads the synthetic stock table instead.

Example:

    python -m data_explorer.main --data ~/Downloads/stocks.csv

Anything typed at the prompt that does not start with ``:`` is treated
as a question about the data.  Commands:

    :search TERM     filter rows containing TERM (no TERM clears it)
    :sort COLUMN     sort by COLUMN; repeat to flip the direction
    :cols COLUMN     show or hide COLUMN
    :page N          jump to page N
    :size N          rows per page
    :stats           column statistics
    :load PATH       load a CSV or JSON file
    :sample          load the sample stock table
    :reset           drop the current dataset
    exit / quit      leave
"""

import argparse
import asyncio
import os
import sys

import pandas as pd
from loguru import logger

from data_explorer import DataExplorerError, DataExplorerSession, ExplorerConfig, SessionView
from data_explorer.agent import SUGGESTED_PROMPTS
from data_explorer.config import PAGE_SIZE_OPTIONS
from data_explorer.views import to_records


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Start the data explorer interactive CLI")
    parser.add_argument(
        "--data",
        type=str,
        default=os.getenv("DATA_EXPLORER_DATA_PATH"),
        help="Path to a CSV or JSON dataset. If omitted, DATA_EXPLORER_DATA_PATH env var is used.",
    )
    parser.add_argument(
        "--sample",
        action="store_true",
        help="Load the synthetic stock dataset instead of a file.",
    )
    parser.add_argument(
        "--page-size",
        type=int,
        default=None,
        help=f"Rows per page (common choices: {', '.join(map(str, PAGE_SIZE_OPTIONS))}).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show debug logging.",
    )
    return parser.parse_args(argv)


def render_view(view: SessionView) -> str:
    """Format the current page as a table with a pager line."""
    if view.error:
        return f"Error: {view.error}"
    if not view.headers:
        return "No dataset loaded. Use :load PATH or :sample."
    frame = pd.DataFrame(to_records(view.rows), columns=list(view.visible_columns))
    lines = [frame.to_string(index=False) if len(frame) else "(no matching rows)"]
    params = view.parameters
    if params.sort_column:
        lines.append(f"Sorted by {params.sort_column} ({params.sort_direction})")
    lines.append(
        f"Showing {view.page_start} to {view.page_end} of {view.filtered_count} rows "
        f"(page {view.current_page}/{view.total_pages}, {view.total_rows} total)"
    )
    return "\n".join(lines)


def render_stats(view: SessionView) -> str:
    """Column statistics as a table, one row per column."""
    if not view.stats:
        return "No dataset loaded."
    frame = pd.DataFrame([s.to_dict() for s in view.stats.values()]).set_index("name")
    return frame.to_string()


async def handle_command(session: DataExplorerSession, line: str) -> str:
    """Run one line of user input and return the text to print."""
    if not line.startswith(":"):
        view = await session.query(line)
        result = view.history[0] if view.history else None
        if result is None:
            return "No answer."
        suffix = f"\n({result.rows_affected} rows)" if result.rows_affected is not None else ""
        return f"{result.response}{suffix}"

    command, _, argument = line[1:].partition(" ")
    argument = argument.strip()
    if command == "search":
        return render_view(session.set_search_term(argument))
    if command == "sort":
        return render_view(session.toggle_sort(argument))
    if command == "cols":
        return render_view(session.toggle_column_visibility(argument))
    if command in ("page", "size"):
        if not argument.lstrip("-").isdigit():
            return f"Expected a whole number after :{command}; got '{argument}'."
        number = int(argument)
        view = session.set_page(number) if command == "page" else session.set_page_size(number)
        return render_view(view)
    if command == "stats":
        return render_stats(session.view())
    if command == "load":
        return render_view(await session.load(os.path.expanduser(argument)))
    if command == "sample":
        return render_view(await session.load_sample())
    if command == "reset":
        return render_view(session.reset())
    return f"Unknown command ':{command}'."


async def _repl(args: argparse.Namespace) -> int:
    overrides = {"default_page_size": args.page_size} if args.page_size else {}
    session = DataExplorerSession(config=ExplorerConfig(**overrides))
    try:
        if args.sample:
            await session.load_sample()
        elif args.data:
            await session.load(os.path.expanduser(args.data))
    except DataExplorerError as e:
        print(f"Failed to load dataset: {e}")
        return 1
    print(render_view(session.view()))
    print("\nData explorer ready. Type 'exit' to quit. Try:")
    for prompt in SUGGESTED_PROMPTS:
        print(f"  - {prompt}")
    print()
    while True:
        try:
            line = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nExiting.")
            break
        if not line:
            continue
        if line.lower() in {"exit", "quit"}:
            print("Goodbye!")
            break
        try:
            print(await handle_command(session, line))
        except (DataExplorerError, ValueError) as e:
            print(f"Error: {e}")
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.debug else "WARNING")
    return asyncio.run(_repl(args))


if __name__ == "__main__":
    sys.exit(main())
