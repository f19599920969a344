"""Report aggregation and rendering."""

from kubehealth.report.aggregation import collapse_repeated_issues, extract_reason
from kubehealth.report.formatter import format_report

__all__ = ["collapse_repeated_issues", "extract_reason", "format_report"]
