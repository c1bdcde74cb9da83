# langlab/prerequisites.py

import logging
import shutil
from typing import Callable, Iterable

from langlab.core.errors import PrerequisiteMissingError

logger = logging.getLogger(__name__)


REQUIRED_TOOLS = ("kubectl", "helm")


def check_prerequisites(
    tools: Iterable[str] = REQUIRED_TOOLS,
    which: Callable[[str], str | None] = shutil.which,
) -> None:
    """Fail fast when a required command line tool is not on PATH."""
    logger.info("Checking prerequisites...")

    missing = [tool for tool in tools if which(tool) is None]
    if missing:
        raise PrerequisiteMissingError(missing)

    logger.info("✅ All prerequisites are installed")
