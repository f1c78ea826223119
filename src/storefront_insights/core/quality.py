"""
Reusable data quality checking framework.

Per-record problems never abort a reporting pass: records are skipped or
coerced at ingress, and what happened is summarized here so it can be logged
and shown next to the numbers it affected.
"""

from dataclasses import dataclass, field
from typing import Callable, Any
import pandas as pd


@dataclass
class DataQualityIssue:
    """A single data quality issue found in the data."""

    column: str
    issue_type: str  # e.g., "unparsed_date", "invalid_number", "invalid_record"
    severity: str  # "critical", "warning", "info"
    count: int
    percentage: float
    sample_values: list[Any] = field(default_factory=list)
    description: str = ""


@dataclass
class DataQualityReport:
    """Summary report of data quality for a single data source."""

    source_name: str
    total_rows: int
    issues: list[DataQualityIssue] = field(default_factory=list)

    @property
    def critical_issues(self) -> list[DataQualityIssue]:
        return [i for i in self.issues if i.severity == "critical"]

    @property
    def warning_issues(self) -> list[DataQualityIssue]:
        return [i for i in self.issues if i.severity == "warning"]

    @property
    def has_issues(self) -> bool:
        return len(self.issues) > 0

    def issue(self, issue_type: str) -> DataQualityIssue | None:
        """First issue of the given type, if any."""
        return next((i for i in self.issues if i.issue_type == issue_type), None)

    def summary(self) -> dict:
        """Return a summary dict for display."""
        return {
            "source": self.source_name,
            "total_rows": self.total_rows,
            "critical": len(self.critical_issues),
            "warnings": len(self.warning_issues),
            "info": len([i for i in self.issues if i.severity == "info"]),
        }


def _percentage(count: int, total: int) -> float:
    return (count / total) * 100 if total > 0 else 0.0


def _has_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    if isinstance(value, float):
        return not pd.isna(value)
    return True


class DataQualityChecker:
    """
    Data quality checker for storefront records.

    Runs against a frame holding one row per raw record, with the raw value
    and the parsed value side by side. Checks for:
    - Values that could not be parsed
    - Values outside a known vocabulary
    - Records rejected outright at validation time

    Extend by adding custom checks via add_check().
    """

    def __init__(self, source_name: str):
        self.source_name = source_name
        self._checks: list[Callable[[pd.DataFrame], list[DataQualityIssue]]] = []
        self._rejected: list[tuple[Any, str]] = []

    def add_check(
        self, check_fn: Callable[[pd.DataFrame], list[DataQualityIssue]]
    ) -> "DataQualityChecker":
        """Add a custom check function. Returns self for chaining."""
        self._checks.append(check_fn)
        return self

    def record_rejected(self, record_key: Any, reason: str) -> None:
        """Note a raw record that failed validation and was skipped."""
        self._rejected.append((record_key, reason))

    def check_unparsed(
        self,
        raw_column: str,
        parsed_column: str,
        issue_type: str,
        severity: str = "warning",
    ) -> "DataQualityChecker":
        """Flag rows whose raw value is present but did not parse."""

        def check(df: pd.DataFrame) -> list[DataQualityIssue]:
            if raw_column not in df.columns or parsed_column not in df.columns:
                return []
            present = df[raw_column].map(_has_value)
            unparsed = present & df[parsed_column].isna()
            count = int(unparsed.sum())
            if count > 0:
                samples = df.loc[unparsed, raw_column].head(5).tolist()
                return [
                    DataQualityIssue(
                        column=raw_column,
                        issue_type=issue_type,
                        severity=severity,
                        count=count,
                        percentage=_percentage(count, len(df)),
                        sample_values=samples,
                        description=f"{count:,} values couldn't be parsed",
                    )
                ]
            return []

        self._checks.append(check)
        return self

    def check_invalid_values(
        self,
        column: str,
        valid_values: set | frozenset,
        severity: str = "warning",
        issue_type: str = "unknown_status",
    ) -> "DataQualityChecker":
        """Add a check for values outside a known vocabulary."""

        def check(df: pd.DataFrame) -> list[DataQualityIssue]:
            if column not in df.columns:
                return []

            col_values = df[column].dropna()
            invalid_mask = ~col_values.isin(valid_values)
            invalid = int(invalid_mask.sum())
            if invalid > 0:
                samples = col_values[invalid_mask].head(5).tolist()
                return [
                    DataQualityIssue(
                        column=column,
                        issue_type=issue_type,
                        severity=severity,
                        count=invalid,
                        percentage=_percentage(invalid, len(df)),
                        sample_values=samples,
                        description=f"{invalid:,} values outside {sorted(valid_values)}",
                    )
                ]
            return []

        self._checks.append(check)
        return self

    def _rejected_issues(self, total_rows: int) -> list[DataQualityIssue]:
        if not self._rejected:
            return []
        count = len(self._rejected)
        return [
            DataQualityIssue(
                column="*",
                issue_type="invalid_record",
                severity="warning",
                count=count,
                percentage=_percentage(count, total_rows),
                sample_values=[key for key, _ in self._rejected[:5]],
                description=f"{count:,} records skipped: {self._rejected[0][1]}",
            )
        ]

    def run(self, df: pd.DataFrame, total_rows: int | None = None) -> DataQualityReport:
        """
        Run all checks and return a quality report.

        Args:
            df: One row per accepted record
            total_rows: Raw record count including rejected ones
        """
        total = len(df) if total_rows is None else total_rows
        all_issues = self._rejected_issues(total)
        if len(df) > 0:
            for check_fn in self._checks:
                all_issues.extend(check_fn(df))

        return DataQualityReport(
            source_name=self.source_name, total_rows=total, issues=all_issues
        )
