"""
Base Command Class

Shared plumbing for the Bastion Deploy commands: the run log, the header,
``--json`` output and the mapping of failures to exit codes.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Any, Dict
import json
from rich.console import Console
from bastiondeploy.exceptions import BastionDeployError
from bastiondeploy.ui_components import show_header
from bastiondeploy.logger import DeployLogger


class BaseCommand(ABC):
    """
    Abstract base command class.

    Subclasses implement ``execute``; callers invoke ``run``, which turns any
    failure into a message plus ``SystemExit(1)`` (130 on Ctrl-C).
    """

    def __init__(self, verbose: bool = False, json_output: bool = False):
        self.verbose = verbose
        self.json_output = json_output
        self.console = Console()
        self.logger: Optional[DeployLogger] = None

    def init_logger(
        self, project_name: str, command_name: str, logs_dir: Path
    ) -> Optional[DeployLogger]:
        """Open the run log. JSON mode writes no log file and returns None."""
        if self.json_output:
            return None
        self.logger = DeployLogger(
            project_name, command_name, logs_dir, verbose=self.verbose
        )
        return self.logger

    def output_json(self, data: Dict[str, Any]) -> None:
        print(json.dumps(data, indent=2))

    def show_header(
        self,
        title: str,
        project: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Show command header (skip in JSON or verbose mode)."""
        if not self.verbose and not self.json_output:
            show_header(
                title=title, project=project, details=details, console=self.console
            )

    def print_warning(self, message: str) -> None:
        if not self.json_output:
            self.console.print(f"[yellow]⚠ {message}[/yellow]")

    def print_dim(self, message: str) -> None:
        if not self.json_output:
            self.console.print(f"[dim]{message}[/dim]")

    def confirm(self, question: str, default: bool = False) -> bool:
        """Ask a y/n question on stdin; an empty answer means ``default``."""
        default_str = "y" if default else "n"
        self.console.print(
            f"{question} [bold bright_white]\\[y/n][/bold bright_white] [dim]({default_str})[/dim]: ",
            end="",
        )
        answer = input().strip().lower()

        if not answer:
            return default

        return answer in ["y", "yes"]

    def _report_failure(self, label: str, error: Exception) -> None:
        if self.json_output:
            self.output_json({"error": str(error), "type": type(error).__name__})
            return

        if self.logger:
            context = error.context if isinstance(error, BastionDeployError) else None
            message = error.message if isinstance(error, BastionDeployError) else str(error)
            self.logger.log_error(f"{label}: {message}", context=context)
            self.console.print(f"\n[dim]Logs saved to:[/dim] {self.logger.log_path}\n")
        else:
            self.console.print(f"\n[bold red]✗ {label}:[/bold red] {error}\n")

    @abstractmethod
    def execute(self, **kwargs) -> None:
        pass

    def run(self, **kwargs) -> None:
        """Run ``execute``, reporting failures and closing the run log."""
        try:
            self.execute(**kwargs)
        except KeyboardInterrupt:
            self.console.print("\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            if self.logger:
                self.console.print(
                    f"\n[dim]Logs saved to:[/dim] {self.logger.log_path}\n"
                )
            raise SystemExit(130)
        except SystemExit:
            raise
        except BastionDeployError as e:
            self._report_failure(type(e).__name__, e)
            raise SystemExit(1)
        except FileNotFoundError as e:
            self._report_failure("File not found", e)
            raise SystemExit(1)
        except Exception as e:
            self._report_failure(type(e).__name__, e)
            raise SystemExit(1)
        finally:
            if self.logger:
                self.logger.close()
