import logging
import sys
from gettext import gettext as _

from exhibit_annotation.config import load_config
from exhibit_annotation.core.annotation import AnnotationSession
from exhibit_annotation.interfaces import CV2AnnotationAdapter

logger = logging.getLogger(__name__)


def handle(args):  # pragma: no cover
    assert args.image.exists(), _("Image file must exist")
    session = AnnotationSession(load_config(), tool=args.tool)
    adapter = CV2AnnotationAdapter(session)
    adapter.open_image(args.image)
    sys.stderr.write(
        _("r/c/p: choose tool, Esc/double-click: finish polygon, Delete: remove selected, e: export, q: quit") + "\n"
    )
    adapter.run()
    text = session.request_export()
    if args.output is None:
        sys.stdout.write(text + "\n")
    else:
        args.output.parent.mkdir(exist_ok=True, parents=True)
        args.output.write_text(text + "\n")
        logger.info(_("Export written to {path}").format(path=args.output))
