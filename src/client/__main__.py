# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Terminal focus client.

Usage:
    python -m src.client

Commands: start, stop, reset, checkin <score>, complete, status, quit.
Suspending the terminal (Ctrl+Z) during a session counts as leaving it.
"""

import asyncio

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from src.client.api import EngagementAPIClient
from src.client.app import InvalidScoreError, StudentFocusApp
from src.client.lifecycle import SignalLifecycleObserver
from src.core.config import get_settings
from src.domains.engagement.state_machine import EngagementState
from src.utils.logging import setup_logging

console = Console()

STATUS_COLORS = {
    EngagementState.NORMAL: "green",
    EngagementState.NEEDS_INTERVENTION: "red",
    EngagementState.REMEDIAL: "yellow",
}


def render(app: StudentFocusApp) -> None:
    state = app.state
    session = app.monitor.session
    color = STATUS_COLORS.get(state.status, "white")
    link = "[green]connected[/green]" if app.subscriber.connected else "[yellow]polling[/yellow]"

    body = f"[{color}]{state.status_text}[/{color}]\nTimer: {session.focus_duration}  ({link})"
    if session.violated:
        body += "\n[red]Focus violation detected. Your mentor has been notified.[/red]"
    if state.intervention:
        body += f"\nTask: [cyan]{state.intervention.get('task_description')}[/cyan]"
    console.print(Panel.fit(body, title=f"Student {app.settings.student_id}"))

    table = Table(show_header=False, box=None)
    for entry in list(state.activity)[:5]:
        table.add_row(entry.timestamp.strftime("%H:%M"), entry.message)
    console.print(table)


async def run() -> None:
    settings = get_settings()
    setup_logging(settings)

    async with EngagementAPIClient(settings.client) as api:
        app = StudentFocusApp(api, settings.client, SignalLifecycleObserver())
        await app.start()
        try:
            while True:
                render(app)
                line = (await asyncio.to_thread(console.input, "> ")).strip()
                command, _, arg = line.partition(" ")

                if command in ("quit", "exit"):
                    break
                if command == "status":
                    await app.refresh()
                elif app.state.is_locked and command in ("start", "checkin"):
                    console.print("[yellow]Focus tools are locked until your mentor responds.[/yellow]")
                elif command == "start":
                    app.monitor.start()
                elif command == "stop":
                    app.monitor.stop()
                elif command == "reset":
                    app.monitor.reset()
                elif command == "checkin":
                    try:
                        result = await app.submit_checkin(arg)
                    except InvalidScoreError as e:
                        console.print(f"[red]{e}[/red]")
                        continue
                    if result is not None:
                        console.print(f"Check-in: [bold]{result.get('status')}[/bold]")
                        if result.get("warning"):
                            console.print(f"[yellow]{result['warning']}[/yellow]")
                elif command == "complete":
                    if not await app.complete_intervention():
                        console.print("[yellow]No remedial task completed.[/yellow]")
                elif command:
                    console.print(f"[red]Unknown command: {command}[/red]")
        finally:
            await app.stop()


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
