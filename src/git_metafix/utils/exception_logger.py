"""Exception log for git-metafix runs.

Records failures with full context (stack trace, git command, cwd) as JSON
entries. The log lives inside the repository's git directory, so writing it
never dirties the working tree that is about to be rewritten.
"""

import json
import os
import threading
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional


class ExceptionLogger:
    """Process-wide exception log (singleton)."""

    _instance: Optional["ExceptionLogger"] = None
    log_file_path: Optional[Path] = None

    def __init__(self, log_file_path: Path, git_dir: Optional[Path] = None):
        self.log_file_path = log_file_path
        self.git_dir = git_dir

    @classmethod
    def initialize(cls, git_dir: Path) -> "ExceptionLogger":
        """Initialize the global exception logger (idempotent per git dir).

        The log file is created lazily on the first logged exception, so a
        clean run leaves nothing behind.

        Args:
            git_dir: The repository's git directory (``git rev-parse --git-dir``)

        Returns:
            Initialized ExceptionLogger instance
        """
        if cls._instance is not None and cls._instance.git_dir == git_dir:
            return cls._instance

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file_path = git_dir / "git-metafix" / f"error_{timestamp}_{os.getpid()}.log"

        cls._instance = cls(log_file_path, git_dir)
        return cls._instance

    @classmethod
    def get_instance(cls) -> Optional["ExceptionLogger"]:
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        cls._instance = None

    def log_exception(
        self,
        exception: BaseException,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Append one JSON entry describing ``exception``.

        Args:
            exception: The exception to log
            context: Additional context data to include in log (optional)
        """
        if not self.log_file_path:
            return

        log_entry = {
            "timestamp": datetime.now().isoformat(),
            "thread": threading.current_thread().name,
            "exception_type": type(exception).__name__,
            "exception_message": str(exception),
            "stack_trace": traceback.format_exc(),
            "context": context or {},
        }

        self.log_file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.log_file_path, "a") as f:
            f.write(json.dumps(log_entry, indent=2, default=str))
            f.write("\n---\n")
