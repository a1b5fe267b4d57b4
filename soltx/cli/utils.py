"""
Utility functions for the soltx CLI
"""

import csv
import io
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from ..errors import DecodeError, UnrecognizedFormat

logger = logging.getLogger("soltx")

def setup_logging(debug: bool = False):
    """Set up logging for the CLI"""
    log_level = logging.DEBUG if debug else logging.WARNING

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s: %(message)s',
                                  datefmt='%Y-%m-%d %H:%M:%S')

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)

    log_dir = Path.home() / ".soltx" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    # The log file always records INFO and above
    file_handler = logging.FileHandler(log_dir / "soltx_cli.log")
    file_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    file_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if debug else logging.INFO)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    logging.getLogger("aiohttp").setLevel(logging.WARNING)

    logger.debug("Logging initialized")

def format_output(data: Dict[str, Any], format_type: str, output_path: Optional[str], console: Console):
    """Format and output data"""
    if format_type == 'csv':
        formatted_data = _dict_to_csv(flatten_dict(data))
    else:
        formatted_data = json.dumps(data, indent=2)

    if output_path:
        try:
            with open(output_path, 'w') as f:
                f.write(formatted_data)
            console.print(f"[green]Output saved to {output_path}[/green]")
        except OSError as e:
            console.print(f"[red]Error saving output to {output_path}: {str(e)}[/red]")
    elif format_type == 'json':
        console.print_json(formatted_data)
    else:
        console.print(formatted_data)

def _dict_to_csv(data: Dict[str, Any]) -> str:
    """Convert a flat dictionary to a one-row CSV string"""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(data.keys())
    writer.writerow(data.values())
    return output.getvalue()

def flatten_dict(d: Dict[str, Any], parent_key: str = '', sep: str = '_') -> Dict[str, Any]:
    """Flatten a nested dictionary"""
    items = []
    for k, v in d.items():
        new_key = f"{parent_key}{sep}{k}" if parent_key else k
        if isinstance(v, dict):
            items.extend(flatten_dict(v, new_key, sep=sep).items())
        else:
            items.append((new_key, v))
    return dict(items)

def format_sol(lamports: int) -> str:
    """Format a lamport amount as SOL with lamports in parentheses"""
    return f"{lamports / 1_000_000_000:.9f} SOL ({lamports:,} lamports)"

def truncate_string(s: str, max_length: int = 50) -> str:
    """Truncate a string to a maximum length"""
    if len(s) <= max_length:
        return s
    return s[:max_length - 3] + "..."

def handle_decode_error(error: DecodeError, console: Console):
    """Display a decode error with its stage and offset"""
    if isinstance(error, UnrecognizedFormat):
        lines = [
            "[bold red]Not a valid versioned or legacy transaction[/bold red]",
            f"As versioned: {escape(str(error.versioned_error))}",
            f"As legacy: {escape(str(error.legacy_error))}",
        ]
    else:
        lines = [f"[bold red]{escape(error.detail)}[/bold red]", f"Stage: {error.stage}"]
        if error.offset is not None:
            lines.append(f"Offset: {error.offset}")
    console.print(Panel("\n".join(lines), title=type(error).__name__, expand=False))
    logger.error(f"Decode error: {str(error)}")

def handle_config_error(error: Exception, console: Console):
    """Display an invalid configuration value"""
    console.print(Panel(f"[bold red]{escape(str(error))}[/bold red]", title="Configuration Error", expand=False))
    logger.error(f"Configuration error: {str(error)}")

def handle_lookup_error(error: Exception, console: Console):
    """Display a failed transaction lookup"""
    console.print(Panel(f"[bold red]Error: {escape(str(error))}[/bold red]", title="Lookup Error", expand=False))
    logger.error(f"Lookup error: {str(error)}")
