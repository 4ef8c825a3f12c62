import argparse
import json
import logging
import sys
from typing import Dict, List, Optional, Tuple

from ..exceptions import DiffmapError
from ..models.diff_options import DiffOptions
from ..models.diff_result import DIFF_STATUS_ALL, DIFF_STATUS_CHANGED
from ..pipeline.diff_files import diff_rasters
from ..services.classifier_service import ClassifierService, PixelInspection
from ..services.image_service import ImageService

logger = logging.getLogger(__name__)

EXIT_SAME = 0
EXIT_CHANGED = 1
EXIT_ERROR = 2


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )


def _pairs(values: Optional[List[str]], flag: str) -> Dict[str, str]:
    pairs = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise DiffmapError(f"{flag} expects KEY=VALUE, got {item!r}")
        pairs[key.strip()] = value
    return pairs


def _point(text: str) -> Tuple[int, int]:
    try:
        x, y = (int(part) for part in text.split(","))
    except ValueError as err:
        raise argparse.ArgumentTypeError(f"expected X,Y, got {text!r}") from err
    return x, y


def _inspection_dict(inspection: PixelInspection) -> dict:
    return {
        "x": inspection.x,
        "y": inspection.y,
        "max_distance": inspection.max_distance,
        "similarity": inspection.similarity.name.lower(),
        "significance": inspection.significance.name.lower(),
        "compared": inspection.compared,
        "different": inspection.different,
        "per_image": [
            {
                "max_distance": stats.max_distance,
                "max_contrast": stats.max_contrast,
                "identical_count": stats.identical_count,
                "significance": stats.significance.name.lower(),
            }
            for stats in inspection.per_image
        ],
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="diffmap",
        description="Perceptual diff of two or more same-sized images.",
    )
    parser.add_argument("images", nargs="+", help="image files; first is original, last is changed")
    parser.add_argument("--output", action="append", metavar="NAME=PATH",
                        help="write render output NAME (e.g. groups, pixels, flagsrgb) to PATH")
    parser.add_argument("--option", action="append", metavar="KEY=VALUE",
                        help="override a diff option, e.g. group_padding_size=10")
    parser.add_argument("--all-statuses", action="store_true",
                        help="render outputs for every status, not only different/mismatch")
    parser.add_argument("--inspect", type=_point, metavar="X,Y",
                        help="also report the classification of one pixel")
    parser.add_argument("--verbose", action="store_true", help="debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        if len(args.images) < 2:
            raise DiffmapError(f"diff requires at least 2 images, got {len(args.images)}")
        output_paths = _pairs(args.output, "--output")
        options = DiffOptions.from_env().with_raw_values(_pairs(args.option, "--option"))
        if args.all_statuses:
            options = options.with_overrides(output_when_status=DIFF_STATUS_ALL)

        image_service = ImageService()
        images = [image_service.load(path) for path in args.images]
        result = diff_rasters(images, output_paths, options, image_service=image_service)
        summary = result.to_dict()
        if args.inspect:
            x, y = args.inspect
            inspection = ClassifierService().inspect_pixel(images, x, y, options)
            summary["inspect"] = _inspection_dict(inspection)
    except (DiffmapError, FileNotFoundError) as err:
        logger.error(f"diffmap failed: {err}")
        return EXIT_ERROR

    print(json.dumps(summary, indent=2))
    return EXIT_CHANGED if result.status in DIFF_STATUS_CHANGED else EXIT_SAME


if __name__ == "__main__":
    sys.exit(main())
