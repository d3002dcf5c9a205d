"""Platform helpers: subprocesses and files."""

from relbot.platform.files import atomic_write_text
from relbot.platform.process import ProcessError, run

__all__ = ["ProcessError", "atomic_write_text", "run"]
