"""Click commands: diagnose, resume, and session management."""

from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import Awaitable, Callable
from pathlib import Path

import click

from kubehealth.cluster.context import ContextNotFoundError
from kubehealth.cluster.kubernetes import ClusterConfigError, KubernetesClusterClient
from kubehealth.config import load_config
from kubehealth.engine.phases import PhaseError
from kubehealth.engine.runner import DiagnosticEngine, DiagnosticOutcome, SessionNotFoundError
from kubehealth.llm.analyzer import LLMAnalyzer
from kubehealth.models.config import KubeHealthConfig
from kubehealth.observability.logging import get_logger, setup_logging
from kubehealth.persistence.checkpointer import FileCheckpointer, validate_session_id
from kubehealth.report.formatter import format_report

_log = get_logger("cli")


_Action = Callable[[DiagnosticEngine], Awaitable[DiagnosticOutcome]]


async def _execute(config: KubeHealthConfig, action: _Action) -> DiagnosticOutcome:
    """Build the collaborators, run or resume one session, and close them."""
    checkpointer = FileCheckpointer(config.checkpoint.dir)
    cluster = await KubernetesClusterClient.create(config.context or None)
    llm = LLMAnalyzer(config.llm) if config.llm.enabled else None
    try:
        return await action(DiagnosticEngine(cluster, checkpointer, config, llm=llm))
    finally:
        if llm is not None:
            await llm.aclose()
        await cluster.aclose()


def _run(config: KubeHealthConfig, output: str | None, action: _Action) -> None:
    """Run *action* and print or write the report.  Known failures exit with status 1."""
    try:
        outcome = asyncio.run(_execute(config, action))
    except (
        SessionNotFoundError,
        ContextNotFoundError,
        ClusterConfigError,
        PhaseError,
        ValueError,
        OSError,
    ) as exc:
        raise click.ClickException(str(exc)) from exc

    markdown = format_report(outcome.report)
    if output:
        Path(output).write_text(markdown + "\n", encoding="utf-8")
        click.echo(f"Report written to {output}", err=True)
    else:
        click.echo(markdown)
    click.echo(f"Session: {outcome.session_id}", err=True)


@click.group()
@click.option("--checkpoint-dir", type=click.Path(file_okay=False), help="Directory holding session checkpoints.")
@click.option("--log-level", type=click.Choice(["debug", "info", "warning", "error"]), help="Log verbosity.")
@click.option("--json-logs/--console-logs", default=False, help="Emit logs as JSON lines.")
@click.pass_context
def cli(ctx: click.Context, checkpoint_dir: str | None, log_level: str | None, json_logs: bool) -> None:
    """Diagnose the health of Kubernetes workloads in a namespace."""
    config = load_config()
    if checkpoint_dir:
        config.checkpoint = dataclasses.replace(config.checkpoint, dir=checkpoint_dir)
    setup_logging(log_level or config.log.level, json_output=json_logs)
    ctx.obj = config


@cli.command()
@click.argument("namespace")
@click.option("--context", "kube_context", help="Kubeconfig context to use (defaults to the active one).")
@click.option("--session-id", help="Session id for the checkpoint (generated when omitted).")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the report to this file.")
@click.option("--no-llm", is_flag=True, help="Skip language-model analysis.")
@click.pass_obj
def diagnose(
    config: KubeHealthConfig,
    namespace: str,
    kube_context: str | None,
    session_id: str | None,
    output: str | None,
    no_llm: bool,
) -> None:
    """Run a full diagnostic pass over NAMESPACE."""
    if kube_context:
        config.context = kube_context
    if no_llm:
        config.llm = dataclasses.replace(config.llm, enabled=False)
    _run(config, output, lambda engine: engine.start(namespace, session_id))


@cli.command()
@click.argument("session_id", required=False)
@click.option("--context", "kube_context", help="Kubeconfig context to use (defaults to the active one).")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the report to this file.")
@click.option("--no-llm", is_flag=True, help="Skip language-model analysis.")
@click.pass_obj
def resume(
    config: KubeHealthConfig,
    session_id: str | None,
    kube_context: str | None,
    output: str | None,
    no_llm: bool,
) -> None:
    """Resume SESSION_ID, or the most recently saved session."""
    if kube_context:
        config.context = kube_context
    if no_llm:
        config.llm = dataclasses.replace(config.llm, enabled=False)
    if session_id is None:
        latest = FileCheckpointer(config.checkpoint.dir).get_latest()
        if latest is None:
            raise click.ClickException("No saved sessions to resume")
        session_id = latest.session_id
        click.echo(f"Resuming latest session {session_id}", err=True)
    resume_id = session_id
    _run(config, output, lambda engine: engine.resume(resume_id))


@cli.group()
def sessions() -> None:
    """Inspect and remove saved sessions."""


@sessions.command("list")
@click.pass_obj
def list_sessions(config: KubeHealthConfig) -> None:
    """List saved sessions, most recent first."""
    checkpointer = FileCheckpointer(config.checkpoint.dir)
    rows = []
    for session_id in checkpointer.list():
        record = checkpointer.load(session_id)
        if record is None:
            continue
        phase = record.metadata.phase if record.metadata else "triage"
        rows.append((record.timestamp, session_id, record.namespace, str(phase)))

    if not rows:
        click.echo("No saved sessions.")
        return
    for timestamp, session_id, namespace, phase in sorted(rows, reverse=True):
        click.echo(f"{session_id}\t{namespace}\t{phase}\t{timestamp}")


@sessions.command("delete")
@click.argument("session_id")
@click.pass_obj
def delete_session(config: KubeHealthConfig, session_id: str) -> None:
    """Delete the checkpoint for SESSION_ID."""
    checkpointer = FileCheckpointer(config.checkpoint.dir)
    try:
        exists = validate_session_id(session_id) in checkpointer.list()
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    if not exists:
        raise click.ClickException(f"No checkpoint found for session '{session_id}'")
    checkpointer.delete(session_id)
    _log.info("session_deleted", session_id=session_id)
    click.echo(f"Deleted session {session_id}")
