import argparse
import logging
import sys
from typing import List, Optional

from ..exceptions import DiffmapError
from ..models.diff_options import DiffOptions
from ..pipeline.batch_diff import diff_directories
from .diff_images import EXIT_ERROR, configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="diffmap-batch",
        description="Diff same-named images across two directories.",
    )
    parser.add_argument("before", help="directory with the original images")
    parser.add_argument("after", help="directory with the changed images")
    parser.add_argument("out", help="directory for <stem>-<output>.png files")
    parser.add_argument("--output", action="append", metavar="NAME",
                        help="render output to write per pair (default: groups)")
    parser.add_argument("--verbose", action="store_true", help="debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        results = diff_directories(
            args.before,
            args.after,
            args.out,
            DiffOptions.from_env(),
            outputs=tuple(args.output or ("groups",)),
        )
    except (DiffmapError, FileNotFoundError, NotADirectoryError) as err:
        logger.error(f"diffmap-batch failed: {err}")
        return EXIT_ERROR

    width = max([len(name) for name in results] + [4])
    print(f"{'name':<{width}}  {'status':<9}  {'diff %':>7}  regions")
    for name, result in results.items():
        print(
            f"{name:<{width}}  {result.status.value:<9}  "
            f"{result.pixel_percentages.diff:>7.2f}  {len(result.regions)}"
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
