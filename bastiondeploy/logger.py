"""
Run logs for Bastion Deploy.

Every command run gets one log file under ``logs/{project}/{date}/``. The file
receives everything, including the stderr of each ssh/scp process; the
console only shows steps, successes and warnings unless ``--verbose``.
"""

import re
from pathlib import Path
from datetime import datetime
from typing import Optional, TextIO
from rich.console import Console

from bastiondeploy.constants import LOG_DATE_FORMAT, LOG_TIME_FORMAT

console = Console()

ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")

RULE = "=" * 80


class DeployLogger:
    """Per-run log file plus the step list printed to the console."""

    def __init__(
        self,
        project_name: str,
        operation: str,
        logs_dir: Path,
        verbose: bool = False,
    ):
        """
        Open ``{logs_dir}/{project}/{date}/{time}_{operation}.log``.

        Args:
            project_name: Name of the topology project
            operation: Command name ('keys', 'up', 'status', 'down')
            logs_dir: Root directory for log files
            verbose: Echo every log line to the console
        """
        self.project_name = project_name
        self.operation = operation
        self.verbose = verbose
        self.has_errors = False
        self._in_step = False

        now = datetime.now()
        run_dir = Path(logs_dir) / project_name / now.strftime(LOG_DATE_FORMAT)
        run_dir.mkdir(parents=True, exist_ok=True)
        self.log_path = run_dir / f"{now.strftime(LOG_TIME_FORMAT)}_{operation}.log"

        # line buffered so the file can be tailed while hosts deploy
        self.log_file: Optional[TextIO] = open(self.log_path, "w", buffering=1)
        self.log_file.write(
            f"{RULE}\nbastiondeploy {operation}: {project_name}\n"
            f"Started: {now.isoformat()}\n{RULE}\n\n"
        )

    def log(self, message: str, level: str = "INFO"):
        """Append a timestamped line; echo it when verbose."""
        if self.log_file:
            timestamp = datetime.now().strftime("%H:%M:%S")
            self.log_file.write(f"[{timestamp}] [{level}] {message}\n")

        if self.verbose:
            style = {"ERROR": "red", "WARNING": "yellow", "DEBUG": "dim"}.get(level)
            console.print(message, style=style, markup=False, highlight=False)

    def log_command(self, command: str):
        self.log(f"Executing: {command}", "DEBUG")

    def log_output(self, output: str, stream: str = "stdout"):
        """
        Record process output, one ``[stream]`` tagged line per output line.

        ANSI escapes are stripped since ssh passes remote colors through.
        """
        clean_output = ANSI_ESCAPE.sub("", output or "").rstrip()
        if not clean_output:
            return

        if self.log_file:
            for line in clean_output.splitlines():
                self.log_file.write(f"  [{stream}] {line}\n")

        if self.verbose:
            console.print(f"[{stream}] {clean_output}", markup=False, style="dim")

    def log_error(self, error: str, context: Optional[str] = None):
        """Record a failure in the log file and print it in red."""
        self.has_errors = True

        if self.log_file:
            self.log_file.write(f"\n{'!' * 80}\nERROR: {error}\n")
            if context:
                self.log_file.write(f"Context: {context}\n")
            self.log_file.write(f"{'!' * 80}\n\n")

        console.print(f"\n[bold red]✗ {error}[/bold red]")
        if context:
            console.print(f"  [color(208)]{context}[/color(208)]")

    def step(self, step_name: str):
        self.log(f"Step: {step_name}")

        if not self.verbose:
            if self._in_step:
                console.print()
            console.print(f"[color(214)]▶[/color(214)] [white]{step_name}[/white]")
        self._in_step = True

    def success(self, message: str):
        self.log(message)
        if not self.verbose:
            console.print(f"  [dim]✓ {message}[/dim]")

    def warning(self, message: str):
        self.log(message, "WARNING")
        if not self.verbose:
            console.print(f"  [yellow]⚠[/yellow] [dim]{message}[/dim]")

    def close(self):
        """Write the run outcome and close the file. Safe to call twice."""
        if self.log_file is None:
            return
        outcome = "FAILED" if self.has_errors else "SUCCESS"
        self.log_file.write(
            f"\n{RULE}\nCompleted: {datetime.now().isoformat()}\nStatus: {outcome}\n{RULE}\n"
        )
        self.log_file.close()
        self.log_file = None
