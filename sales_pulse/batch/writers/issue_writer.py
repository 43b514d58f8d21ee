"""
Issue log writer: data quality issues as JSON lines.
"""

from pathlib import Path

from sales_pulse.core.models import DataQualityIssue
from sales_pulse.observability.logger import get_logger

logger = get_logger(__name__)


class IssueWriter:
    """
    Writes DataQualityIssue records, one JSON object per line.
    """

    def write(self, issues: list[DataQualityIssue], path: str | Path) -> int:
        """
        Args:
            issues: Issues to write (an empty list still creates the file)
            path: Target .jsonl file

        Returns:
            Number of issues written
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            for issue in issues:
                f.write(issue.model_dump_json())
                f.write("\n")

        if issues:
            logger.warning(f"Wrote {len(issues)} data quality issue(s) to {path}")
        return len(issues)
