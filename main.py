#!/usr/bin/env python3
"""
CSR Spending Explorer — launch the API server, or print a one-off summary.

Usage:
    python main.py                          # http://localhost:8000
    python main.py --port 9000              # http://localhost:9000
    python main.py --host 0.0.0.0           # listen on all interfaces
    python main.py --source-url https://.../pub?output=csv
    python main.py --reload                 # auto-reload on code changes
    python main.py --summary --state Maharashtra --q tata
    python main.py --summary --interactive  # type company searches on stdin
"""

from __future__ import annotations

import argparse
import os
import sys
import webbrowser


def _print_view(view) -> None:
    from utils.formatting import format_count, format_inr_crore, truncate_text

    m = view.result.metrics
    print(f"Filters:          {view.predicates.summary()}")
    print(f"Companies:        {format_count(m.distinct_company_count)}")
    print(f"Records:          {format_count(m.record_count)}")
    print(f"Total spending:   {format_inr_crore(m.total_spending)}")
    print()
    top = sorted(view.result.region_totals.items(), key=lambda kv: (-kv[1], kv[0]))[:10]
    for region, total in top:
        print(f"  {truncate_text(region or '(blank)', 30):<30} {format_inr_crore(total):>20}")


def run_summary(args: argparse.Namespace) -> int:
    """Load the sheet once, apply the CLI filters, and print the dashboard numbers.

    With ``--interactive``, each line read from stdin becomes the company
    search; lines arriving within CSR_DEBOUNCE_MS of each other collapse
    into one recompute.
    """
    from engine.filters import FilterPredicateSet
    from engine.session import DashboardSession, Debouncer
    from pipeline.source import CsvSource, SourceError
    from utils.config import AppConfig

    cfg = AppConfig.from_env()
    source = CsvSource(cfg.source_url, ttl_seconds=cfg.cache_ttl_seconds,
                       timeout=cfg.fetch_timeout, min_records=cfg.min_records)
    try:
        store = source.load()
    except SourceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        source.close()

    if source.last_report is not None:
        print(source.last_report.console_summary())

    predicates = FilterPredicateSet.build(
        states=args.state, sectors=args.sector,
        ownership_types=args.ownership, company_name_query=args.q or "",
    )
    session = DashboardSession(store, predicates, display_limit=cfg.display_limit,
                               on_change=_print_view)
    _print_view(session.view)
    if not args.interactive:
        return 0

    search = Debouncer(cfg.debounce_ms / 1000.0,
                       lambda q: session.update(company_name_query=q))
    for line in sys.stdin:
        search(line.strip())
    search.flush()
    return 0


def build_parser() -> argparse.ArgumentParser:
    from utils.config import AppConfig

    cfg = AppConfig.from_env()
    parser = argparse.ArgumentParser(
        description="Launch the CSR Spending Explorer API.",
    )
    parser.add_argument(
        "--host", default=cfg.api_host,
        help="Bind address (default: 127.0.0.1 or APP_HOST env var)",
    )
    parser.add_argument(
        "--port", type=int, default=cfg.api_port,
        help="Port to listen on (default: 8000 or APP_PORT env var)",
    )
    parser.add_argument(
        "--source-url", default=None,
        help="Published CSV URL (default: CSR_SOURCE_URL env var or the bundled sheet)",
    )
    parser.add_argument(
        "--ttl", type=float, default=None,
        help="Seconds a fetched CSV stays cached (default: CSR_CACHE_TTL or 300)",
    )
    parser.add_argument(
        "--reload", action="store_true",
        help="Enable auto-reload on file changes (development mode)",
    )
    parser.add_argument(
        "--no-browser", action="store_true",
        help="Don't open a browser window automatically",
    )
    parser.add_argument(
        "--summary", action="store_true",
        help="Print metrics for the given filters and exit instead of serving",
    )
    parser.add_argument("--state", action="append", help="State/UT filter (repeatable)")
    parser.add_argument("--sector", action="append", help="Development sector filter (repeatable)")
    parser.add_argument("--ownership", action="append", help="PSU/Non-PSU filter (repeatable)")
    parser.add_argument("--q", default=None, help="Company name contains")
    parser.add_argument(
        "--interactive", action="store_true",
        help="With --summary, read company searches from stdin",
    )
    return parser


def main() -> None:
    args = build_parser().parse_args()

    # The app reads its settings from the environment at import time
    if args.source_url is not None:
        os.environ["CSR_SOURCE_URL"] = args.source_url
    if args.ttl is not None:
        os.environ["CSR_CACHE_TTL"] = str(args.ttl)

    if args.summary:
        sys.exit(run_summary(args))

    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn is not installed.")
        print("  pip install uvicorn[standard]")
        sys.exit(1)

    url = f"http://{'localhost' if args.host == '0.0.0.0' else args.host}:{args.port}"
    print(f"Starting CSR Spending Explorer at {url}")
    print(f"Source: {os.getenv('CSR_SOURCE_URL', '(default sheet)')}")
    print()

    if not args.no_browser:
        # Open browser after a short delay to let the server start
        import threading
        threading.Timer(1.5, webbrowser.open, args=(url + "/docs",)).start()

    uvicorn.run(
        "api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
