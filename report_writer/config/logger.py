"""
Logging Module for AI Report Writer
Provides rich console output and file logging
"""
import logging
import logging.handlers
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.text import Text
from rich.tree import Tree

from .settings import get_config

# Rich console for beautiful output
console = Console()


class ReportWriterLogger:
    """Custom logger with rich formatting"""

    def __init__(self, name: str = "report_writer"):
        self.config = get_config()
        self.name = name

        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, self.config.logging.level.upper()))

        # Prevent duplicate handlers
        if not self.logger.handlers:
            self._setup_handlers()

    def _setup_handlers(self):
        """Setup console and file handlers"""
        console_handler = RichHandler(
            console=console,
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
        )
        console_handler.setLevel(getattr(logging, self.config.logging.level.upper()))
        self.logger.addHandler(console_handler)

        log_file = Path(self.config.logging.file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=self.config.logging.max_file_size * 1024 * 1024,
            backupCount=self.config.logging.backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        self.logger.addHandler(file_handler)

    def debug(self, msg: str, *args, **kwargs):
        self.logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        self.logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self.logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        self.logger.error(msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        self.logger.exception(msg, *args, **kwargs)


_loggers = {}


def get_logger(name: str = "report_writer") -> ReportWriterLogger:
    """Get or create a logger instance"""
    if name not in _loggers:
        _loggers[name] = ReportWriterLogger(name)
    return _loggers[name]


# =============================================================================
# RICH OUTPUT HELPERS
# =============================================================================

def print_header(title: str, subtitle: str = None):
    """Print a styled header"""
    text = Text()
    text.append(f"📝 {title}", style="bold cyan")
    if subtitle:
        text.append(f"\n{subtitle}", style="dim")

    console.print(Panel(text, border_style="cyan"))


def print_success(message: str):
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str):
    console.print(f"[red]✗[/red] {message}")


def print_info(message: str):
    console.print(f"[blue]ℹ[/blue] {message}")


def print_outline_tree(outline) -> None:
    """Print an OutlineResult as a heading/subheading tree."""
    tree = Tree(f"[bold cyan]{outline.title}[/bold cyan]")
    for i, item in enumerate(outline.structure, start=1):
        branch = tree.add(f"[bold]{i}. {item.heading}[/bold]")
        for sub in item.subheadings or []:
            branch.add(sub)
    console.print(tree)
