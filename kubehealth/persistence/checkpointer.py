"""File-backed checkpoint store for diagnostic sessions.

Each session id maps to one ``<session_id>.json`` file in the checkpoint
directory holding a single CheckpointRecord.  Saves replace the file
atomically (write to a temporary file, then rename), so a reader never sees
a half-written record.  There is no cross-process locking: concurrent saves
to the same id race and the last writer wins.

Unreadable or malformed files are treated as absent and never raise.
"""

from __future__ import annotations

import json
import os
import re
import tempfile
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import structlog

from kubehealth.models.diagnosis import (
    CheckpointMetadata,
    CheckpointRecord,
    DiagnosticIssue,
    EventSummary,
    IssueSeverity,
    NodeStatus,
    Phase,
    ResourceRef,
    SessionState,
    TriageResult,
)

_log = structlog.get_logger(component="persistence.checkpointer")

_SESSION_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")
_SUFFIX = ".json"


@dataclass(frozen=True)
class LatestCheckpoint:
    """The most recently saved checkpoint and when it was written."""

    session_id: str
    record: CheckpointRecord
    saved_at: datetime


def validate_session_id(session_id: str) -> str:
    """Raise ValueError unless *session_id* is safe to use as a file name."""
    if not _SESSION_ID_RE.match(session_id):
        raise ValueError(
            f"Invalid session id {session_id!r}: use letters, digits, '.', '_' or '-' (max 128 characters)"
        )
    return session_id


def _utcnow_iso() -> str:
    """Return the current UTC time as an ISO-8601 string with milliseconds."""
    now = datetime.now(tz=UTC)
    return now.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


# ---------------------------------------------------------------------------
# JSON encoding
# ---------------------------------------------------------------------------


def _issue_to_dict(issue: DiagnosticIssue) -> dict[str, Any]:
    resource: dict[str, Any] = {"kind": issue.resource.kind, "name": issue.resource.name}
    if issue.resource.namespace is not None:
        resource["namespace"] = issue.resource.namespace
    data: dict[str, Any] = {
        "severity": issue.severity.value,
        "title": issue.title,
        "description": issue.description,
        "resource": resource,
    }
    for key in ("affected_pods", "suggested_commands", "next_steps"):
        value = getattr(issue, key)
        if value is not None:
            data[key] = list(value)
    return data


def _optional_str_list(data: dict[str, Any], key: str) -> list[str] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise TypeError(f"{key} must be a list")
    return [str(v) for v in value]


def _issue_from_dict(data: dict[str, Any]) -> DiagnosticIssue:
    resource = data["resource"]
    return DiagnosticIssue(
        severity=IssueSeverity(data["severity"]),
        title=str(data["title"]),
        description=str(data["description"]),
        resource=ResourceRef(
            kind=str(resource["kind"]),
            name=str(resource["name"]),
            namespace=resource.get("namespace"),
        ),
        affected_pods=_optional_str_list(data, "affected_pods"),
        suggested_commands=_optional_str_list(data, "suggested_commands"),
        next_steps=_optional_str_list(data, "next_steps"),
    )


def record_to_dict(record: CheckpointRecord) -> dict[str, Any]:
    """Serialise *record* to a plain dict for JSON encoding."""
    data: dict[str, Any] = {"namespace": record.namespace, "timestamp": record.timestamp}
    if record.triage_result is not None:
        triage = record.triage_result
        data["triage_result"] = {
            "issues": [_issue_to_dict(i) for i in triage.issues],
            "healthy_pods": list(triage.healthy_pods),
            "node_status": triage.node_status.value,
            "events_summary": [
                {"type": e.type, "reason": e.reason, "message": e.message} for e in triage.events_summary
            ],
        }
    if record.deep_dive_findings is not None:
        data["deep_dive_findings"] = list(record.deep_dive_findings)
    if record.metadata is not None:
        data["metadata"] = {
            "needs_deep_dive": record.metadata.needs_deep_dive,
            "phase": record.metadata.phase.value,
        }
    return data


def record_from_dict(data: Any) -> CheckpointRecord:
    """Decode a record dict.

    Raises:
        KeyError, TypeError, ValueError: if the data does not have the
            shape of a CheckpointRecord.
    """
    if not isinstance(data, dict):
        raise TypeError("checkpoint record must be a JSON object")

    triage_result = None
    triage = data.get("triage_result")
    if triage is not None:
        triage_result = TriageResult(
            issues=[_issue_from_dict(i) for i in triage.get("issues", [])],
            healthy_pods=[str(p) for p in triage.get("healthy_pods", [])],
            node_status=NodeStatus(triage.get("node_status", NodeStatus.UNKNOWN)),
            events_summary=[
                EventSummary(type=str(e["type"]), reason=str(e["reason"]), message=str(e["message"]))
                for e in triage.get("events_summary", [])
            ],
        )

    metadata = None
    meta = data.get("metadata")
    if meta is not None:
        metadata = CheckpointMetadata(
            needs_deep_dive=bool(meta.get("needs_deep_dive", False)),
            phase=Phase(meta.get("phase", Phase.TRIAGE)),
        )

    return CheckpointRecord(
        namespace=str(data["namespace"]),
        timestamp=str(data["timestamp"]),
        triage_result=triage_result,
        deep_dive_findings=_optional_str_list(data, "deep_dive_findings"),
        metadata=metadata,
    )


# ---------------------------------------------------------------------------
# Session state <-> checkpoint record
# ---------------------------------------------------------------------------


def state_to_record(state: SessionState, timestamp: str | None = None) -> CheckpointRecord:
    """Project *state* onto a CheckpointRecord stamped with the current time."""
    return CheckpointRecord(
        namespace=state.namespace,
        timestamp=timestamp or _utcnow_iso(),
        triage_result=TriageResult(
            issues=list(state.issues),
            healthy_pods=list(state.healthy_pods),
            node_status=state.node_status,
            events_summary=list(state.events_summary),
        ),
        deep_dive_findings=list(state.deep_dive_findings),
        metadata=CheckpointMetadata(needs_deep_dive=state.needs_deep_dive, phase=state.phase),
    )


def record_to_state(record: CheckpointRecord) -> SessionState:
    """Rebuild a SessionState, defaulting every optional field that is absent."""
    triage = record.triage_result or TriageResult()
    metadata = record.metadata or CheckpointMetadata()
    return SessionState(
        namespace=record.namespace,
        phase=metadata.phase,
        issues=list(triage.issues),
        healthy_pods=list(triage.healthy_pods),
        node_status=triage.node_status,
        events_summary=list(triage.events_summary),
        deep_dive_findings=list(record.deep_dive_findings or []),
        needs_deep_dive=metadata.needs_deep_dive,
    )


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class FileCheckpointer:
    """Directory of JSON checkpoint files, one per session id."""

    def __init__(self, checkpoint_dir: str | os.PathLike[str]) -> None:
        self._dir = Path(checkpoint_dir)

    @property
    def checkpoint_dir(self) -> Path:
        return self._dir

    def _path(self, session_id: str) -> Path:
        return self._dir / f"{validate_session_id(session_id)}{_SUFFIX}"

    def save(self, session_id: str, record: CheckpointRecord) -> None:
        """Replace the record for *session_id* in full."""
        path = self._path(session_id)
        self._dir.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(record_to_dict(record), indent=2)

        fd, tmp_name = tempfile.mkstemp(dir=self._dir, prefix=f".{session_id}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        _log.debug("checkpoint_saved", session_id=session_id, path=str(path))

    def load(self, session_id: str) -> CheckpointRecord | None:
        """Return the record for *session_id*, or None if absent or unreadable."""
        path = self._path(session_id)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            _log.warning("checkpoint_unreadable", session_id=session_id, error=str(exc))
            return None

        try:
            return record_from_dict(json.loads(content))
        except (ValueError, KeyError, TypeError, AttributeError, RecursionError) as exc:
            _log.warning("checkpoint_corrupt", session_id=session_id, error=str(exc))
            return None

    def list(self) -> set[str]:
        """Return every session id that has a record."""
        if not self._dir.is_dir():
            return set()
        ids = set()
        for entry in os.scandir(self._dir):
            if not entry.name.endswith(_SUFFIX) or not entry.is_file():
                continue
            session_id = entry.name[: -len(_SUFFIX)]
            if _SESSION_ID_RE.match(session_id):
                ids.add(session_id)
        return ids

    def delete(self, session_id: str) -> None:
        """Remove the record for *session_id*; a no-op when there is none.

        An id that is not a valid file name raises ValueError rather than
        being treated as absent, the same as every other store operation.
        """
        self._path(session_id).unlink(missing_ok=True)
        _log.debug("checkpoint_deleted", session_id=session_id)

    def get_latest(self) -> LatestCheckpoint | None:
        """Return the most recently modified record, or None if the store is empty.

        Ties on modification time go to the lexicographically greatest id.
        Records that fail to load are skipped.
        """
        candidates: list[tuple[int, str]] = []
        for session_id in self.list():
            try:
                mtime_ns = self._path(session_id).stat().st_mtime_ns
            except OSError:
                continue
            candidates.append((mtime_ns, session_id))

        for mtime_ns, session_id in sorted(candidates, reverse=True):
            record = self.load(session_id)
            if record is not None:
                return LatestCheckpoint(
                    session_id=session_id,
                    record=record,
                    saved_at=datetime.fromtimestamp(mtime_ns / 1e9, tz=UTC),
                )
        return None
