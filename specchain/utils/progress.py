"""
Progress tracking utilities for pipeline monitoring.
"""

import logging
from typing import Dict, Optional

import pandas as pd

logger = logging.getLogger(__name__)


class ProgressTracker:
    """
    Track per-step progress of a pipeline run.

    Provides:
    - Step-by-step progress tracking
    - Timing information
    - Status reporting (running, completed, failed)
    - Summary as text or DataFrame
    """

    def __init__(self):
        self.steps: Dict[str, dict] = {}

    def start(self, step_name: str) -> None:
        """Mark a step as started."""
        self.steps[step_name] = {
            "status": "running",
            "start_time": pd.Timestamp.now()
        }
        logger.debug(f"Starting: {step_name}")

    def complete(self, step_name: str) -> None:
        """Mark a step as completed."""
        if step_name in self.steps:
            elapsed = pd.Timestamp.now() - self.steps[step_name]["start_time"]
            self.steps[step_name]["status"] = "completed"
            self.steps[step_name]["elapsed"] = elapsed
            logger.debug(f"Completed: {step_name} (Elapsed: {elapsed.total_seconds():.4f}s)")
        else:
            logger.warning(f"Step '{step_name}' not found in tracker")

    def error(self, step_name: str, error_msg: str) -> None:
        """Mark a step as failed."""
        if step_name in self.steps:
            self.steps[step_name]["status"] = "failed"
            self.steps[step_name]["error"] = error_msg
            logger.debug(f"Failed: {step_name}: {error_msg}")

    def summary(self) -> str:
        """Return a text summary of all steps."""
        lines = ["Pipeline Summary"]

        for step, info in self.steps.items():
            status = info["status"]
            elapsed = info.get("elapsed")
            elapsed = f"{elapsed.total_seconds():.4f}s" if elapsed is not None else "N/A"

            status_symbol = {
                "completed": "[OK]",
                "running": "[RUNNING]",
                "failed": "[FAILED]"
            }.get(status, "[?]")

            lines.append(f"  {status_symbol} {step}: {status} ({elapsed})")

            if status == "failed" and "error" in info:
                lines.append(f"      Error: {info['error']}")

        return "\n".join(lines)

    def to_frame(self) -> pd.DataFrame:
        """Return one row per step with status and elapsed seconds."""
        rows = [
            {
                "step": step,
                "status": info["status"],
                "elapsed_s": self.get_elapsed(step),
                "error": info.get("error"),
            }
            for step, info in self.steps.items()
        ]
        return pd.DataFrame(rows, columns=["step", "status", "elapsed_s", "error"])

    def get_elapsed(self, step_name: str) -> Optional[float]:
        """Elapsed time for a step in seconds, or None if not completed."""
        if step_name not in self.steps:
            return None
        elapsed = self.steps[step_name].get("elapsed")
        if elapsed is None:
            return None
        return elapsed.total_seconds()
