"""Markdown rendering of a DiagnosticReport."""

from __future__ import annotations

from kubehealth.models.diagnosis import SEVERITY_ORDER, DiagnosticIssue, IssueSeverity
from kubehealth.models.report import DiagnosticReport, HealthyResource
from kubehealth.report.aggregation import collapse_repeated_issues

_SECTION_TITLES: dict[IssueSeverity, str] = {
    IssueSeverity.CRITICAL: "Critical Issues",
    IssueSeverity.WARNING: "Warnings",
    IssueSeverity.INFO: "Info",
}


def _format_issue(issue: DiagnosticIssue) -> str:
    lines = [f"### {issue.title}", "", f"**Resource:** {issue.resource.kind}/{issue.resource.name}"]
    if issue.resource.namespace:
        lines.append(f"**Namespace:** {issue.resource.namespace}")
    if issue.affected_pods:
        lines.append(f"**Affected pods:** {', '.join(issue.affected_pods)}")
    lines.extend(["", issue.description])

    if issue.suggested_commands:
        lines.extend(["", "#### Suggested Commands", "```bash", *issue.suggested_commands, "```"])
    if issue.next_steps:
        lines.extend(["", "#### Next Steps", *(f"- {step}" for step in issue.next_steps)])
    return "\n".join(lines)


def _format_healthy_resources(resources: list[HealthyResource]) -> str:
    lines = ["## Healthy Resources", "", "| Kind | Name | Status |", "|------|------|--------|"]
    lines.extend(f"| {r.kind} | {r.name} | {r.status} |" for r in resources)
    return "\n".join(lines)


def format_report(report: DiagnosticReport) -> str:
    """Render *report* as Markdown.

    Issues are collapsed again before rendering; this is a no-op for reports
    built by the summary phase.
    """
    lines = [
        f"# Diagnostic Report: {report.namespace}",
        "",
        f"**Generated:** {report.timestamp}",
        "",
        f"**Summary:** {report.summary}",
        "",
        "---",
    ]

    issues = collapse_repeated_issues(report.issues)
    for severity in SEVERITY_ORDER:
        section = [i for i in issues if i.severity == severity]
        if section:
            lines.extend(["", f"## {_SECTION_TITLES[severity]}", ""])
            for issue in section:
                lines.extend([_format_issue(issue), ""])

    if report.deep_dive_findings:
        lines.extend(["", "## Investigation Findings", ""])
        for finding in report.deep_dive_findings:
            lines.extend([finding, ""])

    if report.llm_analysis:
        lines.extend(["", "## Analysis & Proposed Solutions", "", report.llm_analysis])

    if report.healthy_resources:
        lines.extend(["", _format_healthy_resources(report.healthy_resources)])

    return "\n".join(lines)
