from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from ...engine.types import BatchSummary


def report(command: BaseCommand, label: str, summary: BatchSummary) -> None:
    """Print ``summary``; raise CommandError when nothing succeeded."""

    for error in summary.errors:
        command.stderr.write(f"  {error}")
    line = (
        f"{label}: {summary.processed} processed, {summary.succeeded} succeeded, "
        f"{summary.failed} failed"
    )
    if summary.removed or summary.unreachable:
        line += f", {summary.removed} removed, {summary.unreachable} unreachable"
    if summary.failed and not (summary.succeeded or summary.removed):
        raise CommandError(line)
    command.stdout.write(command.style.SUCCESS(line))
