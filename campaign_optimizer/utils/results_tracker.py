"""
Results tracker for saving and comparing optimizer runs over time.

This module allows you to:
- Save run summaries with timestamps and the configuration used
- List and reload previous runs
- Compare two runs to see the effect of threshold changes
"""

import json
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional
from pathlib import Path


class ResultsTracker:
    """
    Track and save optimizer run results for comparison and analysis.

    Saves results in structured JSON format with:
    - Run metadata (timestamp, name, notes)
    - Configuration used
    - Summary counts and per-campaign outcomes
    """

    COMPARED_COUNTS = (
        "records_processed",
        "paused",
        "bid_adjusted",
        "applied",
        "failed",
        "skipped",
    )

    def __init__(self, results_dir: str = "results"):
        """
        Initialize results tracker.

        Args:
            results_dir: Directory to store results files
        """
        self.results_dir = Path(results_dir)
        self.results_dir.mkdir(parents=True, exist_ok=True)

    def save_run(
        self,
        summary,
        config: Dict[str, Any],
        run_name: Optional[str] = None,
        notes: Optional[str] = None
    ) -> str:
        """
        Save a complete optimizer run.

        Args:
            summary: RunSummary of the run
            config: Configuration used (thresholds, batch size, etc.)
            run_name: Optional name for this run
            notes: Optional notes about this run

        Returns:
            Path to saved results file
        """
        timestamp = datetime.now(timezone.utc)
        run_id = timestamp.strftime("%Y%m%d_%H%M%S_%f")

        results = {
            "run_metadata": {
                "run_id": run_id,
                "run_name": run_name or f"Run_{run_id}",
                "timestamp": timestamp.isoformat(),
                "notes": notes,
                "stop_reason": summary.stop_reason.value,
            },
            "configuration": config,
            "summary_statistics": summary.to_dict(),
            "action_results": [r.to_dict() for r in summary.results],
        }

        filepath = self.results_dir / f"run_{run_id}.json"
        with open(filepath, 'w') as f:
            json.dump(results, f, indent=2)

        return str(filepath)

    def _path(self, run_id: str) -> Path:
        if not run_id.endswith('.json'):
            run_id = f"run_{run_id}.json"
        return self.results_dir / run_id

    def load_run(self, run_id: str) -> Dict[str, Any]:
        """
        Load results from a previous run.

        Args:
            run_id: Run ID or filename

        Returns:
            Results dictionary
        """
        with open(self._path(run_id), 'r') as f:
            return json.load(f)

    def list_runs(self) -> List[Dict[str, str]]:
        """
        List all saved runs, oldest first.

        Returns:
            List of dictionaries with run metadata
        """
        runs = []
        for filepath in sorted(self.results_dir.glob("run_*.json")):
            with open(filepath, 'r') as f:
                data = json.load(f)
            runs.append({
                "run_id": data["run_metadata"]["run_id"],
                "run_name": data["run_metadata"]["run_name"],
                "timestamp": data["run_metadata"]["timestamp"],
                "stop_reason": data["run_metadata"]["stop_reason"],
                "filepath": str(filepath)
            })
        return runs

    def get_latest_run(self) -> Optional[Dict[str, Any]]:
        """Get the most recent run."""
        runs = self.list_runs()
        if runs:
            return self.load_run(runs[-1]["run_id"])
        return None

    def compare_runs(self, run_id_1: str, run_id_2: str) -> Dict[str, Any]:
        """
        Compare two runs.

        Args:
            run_id_1: First run ID (baseline)
            run_id_2: Second run ID (comparison)

        Returns:
            Comparison dictionary with count deltas and config changes
        """
        run1 = self.load_run(run_id_1)
        run2 = self.load_run(run_id_2)

        stats1 = run1["summary_statistics"]
        stats2 = run2["summary_statistics"]

        return {
            "baseline": {
                "run_id": run1["run_metadata"]["run_id"],
                "run_name": run1["run_metadata"]["run_name"],
            },
            "comparison": {
                "run_id": run2["run_metadata"]["run_id"],
                "run_name": run2["run_metadata"]["run_name"],
            },
            "configuration_changes": self._compare_configs(
                run1["configuration"],
                run2["configuration"]
            ),
            "counts_delta": {
                key: stats2.get(key, 0) - stats1.get(key, 0)
                for key in self.COMPARED_COUNTS
            },
        }

    def _compare_configs(self, config1: Dict, config2: Dict) -> Dict[str, Any]:
        """Compare two configurations and show changes."""
        changes = {}
        for key in set(config1) | set(config2):
            val1 = config1.get(key)
            val2 = config2.get(key)
            if val1 != val2:
                changes[key] = {"from": val1, "to": val2}
        return changes

    def delete_run(self, run_id: str) -> bool:
        """Delete a saved run. Returns False if it does not exist."""
        filepath = self._path(run_id)
        if filepath.exists():
            filepath.unlink()
            return True
        return False
