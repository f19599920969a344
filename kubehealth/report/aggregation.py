"""Collapsing of repeated diagnostic issues.

Issues sharing a severity and a reason (the title text before the first
colon) are merged into one summary issue so that, for example, ten
CrashLoopBackOff workloads render as a single report entry.
"""

from __future__ import annotations

from collections.abc import Iterable

from kubehealth.models.diagnosis import DiagnosticIssue, IssueSeverity, ResourceRef

MULTIPLE_RESOURCES = "(multiple)"


def extract_reason(title: str) -> str:
    """Return the reason prefix of a ``"Reason: ResourceLabel"`` title."""
    reason, sep, _ = title.partition(":")
    return reason.strip() if sep else title


def _ordered_union(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


def _collapse_group(issues: list[DiagnosticIssue]) -> DiagnosticIssue:
    if len(issues) == 1:
        return issues[0]

    first = issues[0]
    reason = extract_reason(first.title)
    labels = [f"{i.resource.kind}/{i.resource.name}" for i in issues]

    description = "\n".join(
        [
            f"{len(issues)} workloads are affected by {reason}:",
            *(f"- **{label}**" for label in labels),
            "",
            first.description,
        ]
    )

    affected_pods = [pod for i in issues for pod in (i.affected_pods or [])]
    suggested_commands = _ordered_union(cmd for i in issues for cmd in (i.suggested_commands or []))
    next_steps = _ordered_union(step for i in issues for step in (i.next_steps or []))

    return DiagnosticIssue(
        severity=first.severity,
        title=f"{reason} ({len(issues)} workloads affected)",
        description=description,
        resource=ResourceRef(kind=first.resource.kind, name=MULTIPLE_RESOURCES, namespace=first.resource.namespace),
        affected_pods=affected_pods or None,
        suggested_commands=suggested_commands or None,
        next_steps=next_steps or None,
    )


def collapse_repeated_issues(issues: Iterable[DiagnosticIssue]) -> list[DiagnosticIssue]:
    """Merge issues sharing (severity, reason), preserving first-seen order.

    Single-member groups are returned as the original objects.  The same
    reason at different severities is never merged.
    """
    groups: dict[tuple[IssueSeverity, str], list[DiagnosticIssue]] = {}
    for issue in issues:
        groups.setdefault((issue.severity, extract_reason(issue.title)), []).append(issue)
    return [_collapse_group(group) for group in groups.values()]
