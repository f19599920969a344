"""Resource quantity parsing and container sizing analysis."""

from kubehealth.analysis.quantity import format_cpu, format_memory, parse_quantity
from kubehealth.analysis.resources import analyze_resources, format_recommendation

__all__ = [
    "analyze_resources",
    "format_cpu",
    "format_memory",
    "format_recommendation",
    "parse_quantity",
]
