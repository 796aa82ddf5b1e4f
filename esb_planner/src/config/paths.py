# src/config/paths.py
import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent.parent
# Logs and dashboards; ESB_PLANNER_OUTPUT overrides the in-tree default
OUTPUT_DIR = Path(os.environ.get("ESB_PLANNER_OUTPUT", PROJECT_ROOT / "output"))


def output_path(filename: str) -> Path:
    """Path for a log or report file, creating the output directory on first use."""
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    return OUTPUT_DIR / filename
