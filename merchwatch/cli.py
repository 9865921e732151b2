"""
merchwatch/cli.py
Command-line interface for Merch Watch.

USAGE:
  merchwatch --chat chat.txt --cutoff 2024-10-16
  merchwatch --chat chat.txt --cutoff 2024-10-16 --policy alternating_sender --sla 60
  merchwatch --chat chat.txt --cutoff 2024-10-16 --mapping dump_1.csv --mapping dump_2.csv
  merchwatch --chat chat.txt --cutoff 2024-10-16 --output open_queries.csv
  merchwatch --chat chat.txt --cutoff 2024-10-16 --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from merchwatch.classifiers import POLICIES
from merchwatch.config import ensure_config
from merchwatch.parsers.mapping_parser import (
    decode_mapping_bytes,
    merge_mappings,
    parse_mapping_csv,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog        = 'merchwatch',
        description = 'Merch Watch — open PID queries and SLA breaches from a chat export',
    )
    parser.add_argument(
        '--chat', '-c',
        required = True,
        type     = Path,
        help     = 'Exported chat transcript (.txt)',
    )
    parser.add_argument(
        '--cutoff',
        required = True,
        help     = 'Only messages after midnight IST of this date (YYYY-MM-DD)',
    )
    parser.add_argument(
        '--sla',
        type    = int,
        default = None,
        help    = 'SLA in minutes (default: policy default, 60 or 120)',
    )
    parser.add_argument(
        '--policy', '-p',
        choices = sorted(POLICIES),
        default = None,
        help    = 'Classification policy (default: from config)',
    )
    parser.add_argument(
        '--mapping', '-m',
        action  = 'append',
        type    = Path,
        default = [],
        help    = 'PID mapping CSV; repeat to merge several (earliest wins)',
    )
    parser.add_argument(
        '--mapping-dir',
        type    = Path,
        default = None,
        help    = 'Directory of dump_*.csv mapping tables (default: from config)',
    )
    parser.add_argument(
        '--output', '-o',
        type    = Path,
        default = None,
        help    = 'Write the CSV report to this file instead of stdout',
    )
    parser.add_argument(
        '--json',
        action  = 'store_true',
        help    = 'Print rows and meta as JSON instead of CSV',
    )
    parser.add_argument(
        '--root',
        type    = Path,
        default = None,
        help    = 'Directory holding merchwatch_config.json (default: cwd)',
    )
    parser.add_argument(
        '--verbose', '-v',
        action  = 'store_true',
        help    = 'Enable debug logging',
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    # ── LOGGING SETUP ────────────────────────────────────────
    logging.basicConfig(
        level   = logging.DEBUG if args.verbose else logging.INFO,
        format  = '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt = '%H:%M:%S',
        stream  = sys.stderr,
    )

    # Imported late so --help stays fast
    from merchwatch.api import ReportRequestError, SlaReportAPI

    if not args.chat.exists():
        print(f"Error: chat file not found: {args.chat}", file=sys.stderr)
        return 1

    config = ensure_config(args.root)
    if args.mapping_dir:
        config['mapping_dir'] = str(args.mapping_dir)

    api = SlaReportAPI(config=config)

    mapping = None
    if args.mapping:
        try:
            mapping = merge_mappings(
                parse_mapping_csv(decode_mapping_bytes(p.read_bytes())) for p in args.mapping
            )
        except OSError as e:
            print(f"Error: cannot read mapping file: {e}", file=sys.stderr)
            return 1

    chat_text = args.chat.read_text(encoding='utf-8-sig', errors='replace')
    try:
        result = api.generate_report(
            chat_text        = chat_text,
            cutoff_date      = args.cutoff,
            sla_minutes      = args.sla,
            mapping          = mapping,
            policy           = args.policy,
        )
    except ReportRequestError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        output = json.dumps({'rows': result['rows'], 'meta': result['meta']}, indent=2, ensure_ascii=False)
    else:
        output = result['csv']

    if args.output:
        args.output.write_text(output + '\n', encoding='utf-8')
        logger.info(f"Wrote {result['meta']['rowCount']} rows to {args.output}")
    else:
        print(output)
    return 0


if __name__ == '__main__':
    sys.exit(main())
