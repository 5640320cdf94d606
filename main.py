import argparse
import sys
from datetime import datetime

from config import RunConfig
from data_loader import TABLES
from data_structures import Variant
from exceptions import CflpError
import pipeline
import reports
import cflp_utils.logging as logging
from cflp_utils.context import run_context


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cflp",
        description="Solve a Capacitated Facility Location Problem from nine comma-separated tables.",
    )
    for name in TABLES:
        parser.add_argument(name, help=f"path to the {name.replace('_', ' ')} table")
    parser.add_argument("p", type=int, help="desired number of open facilities")
    parser.add_argument("variant", choices=[v.value for v in Variant], help="single allocation or divisible demand")

    parser.add_argument("--time-limit", type=float, default=None, help="solver time limit in seconds")
    parser.add_argument("--mip-gap", type=float, default=None, help="relative MIP optimality gap")
    parser.add_argument("--threads", type=int, default=None, help="solver thread count")
    parser.add_argument("--solver-output", action="store_true", help="show the solver log")
    parser.add_argument("--log-level", default=None, help="logging level (default INFO)")
    parser.add_argument("--log-dir", default=None, help="also write rotating log files here")
    parser.add_argument("--csv-dir", default=None, help="write facility and flow CSV reports here")
    return parser


def run_pipeline(args) -> int:
    config = RunConfig()
    config.update_from_args(args)

    logging.setup(level=config.LogLevel, log_dir=config.LogDir)
    logger = logging.getLogger(__name__)

    variant = Variant.from_token(args.variant)
    paths = [getattr(args, name) for name in TABLES]
    run_id = datetime.now().strftime("%Y%m%d_%H%M%S")

    with run_context(run_id=run_id, variant=variant.value):
        try:
            report = pipeline.run(paths, args.p, variant, config)
            reports.print_report(report)
            if args.csv_dir:
                reports.write_report_csvs(args.csv_dir, report)
        except CflpError as e:
            logger.error("Run aborted: %s", e)
            print(f"Error: {e}", file=sys.stderr)
            return 1
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return run_pipeline(args)

if __name__ == '__main__':
    sys.exit(main())
