import json
import logging
import sys
from gettext import gettext as _
from pathlib import Path

logger = logging.getLogger(__name__)

COMMAND_DESCRIPTION = _("Export saved shape definitions as INSERT statements or JSON lines")


def command(subparser):
    subparser.add_argument(
        "input", type=Path, help=_("JSON file with a list of shape objects")
    )
    subparser.add_argument(
        "-o",
        "--output",
        type=Path,
        help=_("Where to write the export text (stdout if omitted)"),
    )
    subparser.add_argument(
        "-f",
        "--format",
        dest="fmt",
        choices=["sql", "jsonl"],
        help=_("Export format (configured default if omitted)"),
    )
    subparser.add_argument(
        "--target-ids",
        dest="target_ids",
        type=int,
        nargs="+",
        help=_("Destination ids (configured default if omitted)"),
    )

    def handle(args):
        from exhibit_annotation.config import load_config
        from exhibit_annotation.core.annotation import Shape
        from exhibit_annotation.core.export import export_all

        cfg = load_config()
        assert args.input.exists(), _("Input file must exist")
        with args.input.open("r") as f:
            shapes = [Shape.from_dict(item) for item in json.load(f)]
        logger.debug(_("Loaded {n} shapes").format(n=len(shapes)))

        text = export_all(
            shapes,
            args.target_ids or cfg.export.target_ids,
            fmt=args.fmt or cfg.export.format,
            table=cfg.export.table,
            columns=cfg.export.columns,
        )
        if args.output is None:
            sys.stdout.write(text + "\n")
        else:
            args.output.parent.mkdir(exist_ok=True, parents=True)
            args.output.write_text(text + "\n")

    return handle
