# flake8: noqa E501

from gettext import gettext as _
from pathlib import Path

COMMAND_DESCRIPTION = _("Interactively annotate an image")


def command(subparser):
    subparser.add_argument("image", type=Path)
    subparser.add_argument(
        "-o",
        "--output",
        dest="output",
        type=Path,
        help=_("Where to write the export text (stdout if omitted)"),
    )
    subparser.add_argument(
        "-t",
        "--tool",
        dest="tool",
        default="rect",
        choices=["rect", "circle", "poly"],
        help=_("Initial drawing tool"),
    )

    def handle(args):
        from .annotator import handle as annotator_handle

        annotator_handle(args)

    return handle
