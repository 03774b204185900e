"""Command-line entry point: one-shot cluster analysis or the API server.

Usage:
    python -m pulse_clusters.main analyze 0x... --top-holders 50 --days-back 30
    python -m pulse_clusters.main serve --port 8080
"""

import argparse
import asyncio
import json
import sys

from loguru import logger

from config.settings import settings
from pulse_clusters.parsers.bubblemaps.analyzer import analyze_wallet_clusters
from pulse_clusters.parsers.bubblemaps.exceptions import NoHoldersFoundError
from pulse_clusters.parsers.bubblemaps.models import ClusterAnalysis, ClusteringOptions
from pulse_clusters.utils.logger import setup_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="PulseChain wallet cluster analyzer")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Analyze holder clusters for one token")
    analyze.add_argument("token_address", help="Token contract address (0x...)")
    analyze.add_argument("--top-holders", type=int, default=settings.cluster_default_top_holders)
    analyze.add_argument("--days-back", type=int, default=settings.cluster_default_days_back)
    analyze.add_argument("--decimals", type=int, default=None, help="Compare volume in whole tokens")
    analyze.add_argument("--min-amount", type=float, default=None, help="Ignore smaller transfers")
    analyze.add_argument("--no-dedupe", action="store_true", help="Count duplicate transfers twice")
    analyze.add_argument("--json", action="store_true", help="Print the full result as JSON")

    serve = sub.add_parser("serve", help="Run the cluster analysis API")
    serve.add_argument("--host", default=None, help=f"Bind address (default {settings.dashboard_host})")
    serve.add_argument("--port", type=int, default=None, help=f"Port (default {settings.dashboard_port})")
    return parser


def format_summary(analysis: ClusterAnalysis) -> str:
    lines = [
        f"Wallets analyzed: {analysis.total_wallets}",
        f"Clusters: {len(analysis.clusters)} ({analysis.high_risk_clusters} high-risk)",
        f"Connections: {analysis.total_connections}",
    ]
    for cluster in analysis.clusters:
        lines.append(
            f"  [{cluster.risk_score:>3}] {cluster.id}: {cluster.size} wallets, "
            f"{cluster.transaction_count} txs, volume {cluster.total_volume:,.0f}"
        )
        for label in cluster.common_patterns + cluster.risk_indicators:
            lines.append(f"        - {label}")
    return "\n".join(lines)


async def run_analyze(args: argparse.Namespace) -> int:
    options = ClusteringOptions(
        token_address=args.token_address,
        top_holders_count=args.top_holders,
        days_back=args.days_back,
        min_transaction_amount=args.min_amount,
        token_decimals=args.decimals,
        dedupe_transfers=not args.no_dedupe,
        batch_size=settings.cluster_transfer_batch_size,
    )
    try:
        analysis = await analyze_wallet_clusters(options)
    except NoHoldersFoundError as e:
        logger.error(f"{e}: {args.token_address}")
        return 1

    if args.json:
        print(json.dumps(analysis.to_dict(), indent=2))
    else:
        print(format_summary(analysis))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logger(level="INFO", log_file=args.command == "serve")

    if args.command == "serve":
        from pulse_clusters.api.server import run_api_server

        asyncio.run(run_api_server(args.host, args.port))
        return 0

    return asyncio.run(run_analyze(args))


if __name__ == "__main__":
    sys.exit(main())
