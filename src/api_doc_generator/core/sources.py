import logging
import os
from pathlib import Path

from api_doc_generator.core.conventions import GIN_CONVENTIONS, FrameworkConventions

logger = logging.getLogger(__name__)


def is_source_file(path: Path, conventions: FrameworkConventions = GIN_CONVENTIONS) -> bool:
    return path.suffix == conventions.source_suffix and not path.name.endswith(conventions.test_suffix)


def discover_source_files(root: Path, conventions: FrameworkConventions = GIN_CONVENTIONS) -> list[Path]:
    """Return every analyzable source file under root, sorted by path.

    Unreadable directories below the root are logged and skipped. An unreadable
    root raises.
    """

    def _on_error(error: OSError) -> None:
        if error.filename is not None and Path(error.filename) == Path(root):
            raise error
        logger.warning("Skipping unreadable path %s: %s", error.filename, error.strerror)

    files: list[Path] = []
    for directory, dirnames, filenames in os.walk(root, onerror=_on_error):
        dirnames[:] = sorted(d for d in dirnames if d not in conventions.excluded_segments)
        for filename in sorted(filenames):
            path = Path(directory) / filename
            if is_source_file(path, conventions):
                files.append(path)
    return sorted(files)
