from pathlib import Path
from typing import Optional


class TaskPaths:
    """
    Log path manager for export runs.

    Structure:
    - Global logs: logs/<name>.log
    - Per-run logs: logs/runs/<run_id>/<name>.log
    """

    def __init__(self, logs_root: str = "logs", project_root: Optional[Path] = None):
        """
        Args:
            logs_root: Base logs directory name (default: "logs")
            project_root: If provided, logs live under <project_root>/<logs_root>
        """
        if project_root:
            self.logs_root = Path(project_root) / logs_root
        else:
            self.logs_root = Path(logs_root)

    def get_log_path(self, run_id: str | None = None, name: str = "app") -> str:
        """
        Get the log file path for a logger, creating its directory.

        Args:
            run_id: Optional run identifier for per-run logging
            name: Log file name (without .log extension)

        Returns:
            Full path to log file as string
        """
        if run_id:
            p = self.logs_root / "runs" / run_id / f"{name}.log"
        else:
            p = self.logs_root / f"{name}.log"
        p.parent.mkdir(parents=True, exist_ok=True)
        return str(p)
