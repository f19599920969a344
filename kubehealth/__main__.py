"""Entry point for `python -m kubehealth`.

Usage:
    python -m kubehealth diagnose <namespace>
    uv run python -m kubehealth resume
"""

from __future__ import annotations

from kubehealth.cli import cli

cli()
