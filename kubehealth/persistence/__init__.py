"""Durable checkpoint storage for diagnostic sessions."""

from kubehealth.persistence.checkpointer import (
    FileCheckpointer,
    LatestCheckpoint,
    record_to_state,
    state_to_record,
)

__all__ = ["FileCheckpointer", "LatestCheckpoint", "record_to_state", "state_to_record"]
