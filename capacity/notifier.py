"""
Console Notifier — Clean, structured console output.

Formats server lifecycle events, counter changes and keep-alive results
into timestamped console lines, with ANSI colors for readability.
"""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from typing import Iterable

from capacity.models import Program

# ANSI color codes for terminal styling
_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_RED = "\033[91m"
_GREEN = "\033[92m"
_YELLOW = "\033[93m"
_BLUE = "\033[94m"
_CYAN = "\033[96m"
_WHITE = "\033[97m"
_GRAY = "\033[90m"

# Verbosity for DEBUG-only output, set once at startup
_debug = False


def configure(log_level: str) -> None:
    """Enable or disable debug-level output."""
    global _debug
    _debug = log_level.upper() == "DEBUG"


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _action_color(action: str) -> str:
    if action == "register" or action == "add":
        return _GREEN
    elif action == "cancel":
        return _YELLOW
    else:
        return _CYAN


def print_banner() -> None:
    """Print the startup banner."""
    banner = f"""
{_BOLD}{_CYAN}+------------------------------------------------------------------+
|          Camp Capacity Tracker -- Registration Counter           |
|          Async * Atomic writes * Advisory limits                 |
+------------------------------------------------------------------+{_RESET}
"""
    print(banner)


def print_catalog(programs: Iterable[Program], counts: dict) -> None:
    """Print the loaded catalog with the counts found on disk."""
    for program in programs:
        count = counts.get(program.id, 0)
        color = _RED if count >= program.limit else _GREEN
        print(
            f"  {_BOLD}{_BLUE}> Program:{_RESET} {_WHITE}{program.display_name}{_RESET}"
            f"  {_DIM}({program.id}){_RESET}"
            f"  {color}{count}/{program.limit}{_RESET}"
        )


def print_listening(host: str, port: int, counters_file: str) -> None:
    """Print the address the server is bound to."""
    print(
        f"\n  {_BOLD}{_GREEN}Server running on {host}:{port}{_RESET}"
        f"  {_DIM}[counters: {counters_file}]{_RESET}"
        f"  {_DIM}(Press Ctrl+C to stop){_RESET}\n"
    )


def print_admin_disabled() -> None:
    """Warn that no admin key is configured."""
    print(f"  {_YELLOW}ADMIN_KEY is not set; the admin view is disabled.{_RESET}")


def print_counter_change(program_id: str, action: str, count: int, limit: int) -> None:
    """Print a counter mutation."""
    color = _action_color(action)
    full = f"  {_RED}FULL{_RESET}" if count >= limit else ""
    print(
        f"  {_GRAY}[{_now()}]{_RESET} "
        f"{_BOLD}{color}{action.upper()}{_RESET} "
        f"{_BOLD}{program_id}:{_RESET} {count}/{limit}{full}"
    )


def print_check(program_id: str, count: int, limit: int) -> None:
    """Print a capacity check (debug level)."""
    if not _debug:
        return
    print(f"  {_DIM}[{_now()}] check {program_id}: {count}/{limit}{_RESET}")


def print_ping(url: str, status: int) -> None:
    """Print a subtle heartbeat after a successful keep-alive ping (debug level)."""
    if not _debug:
        return
    ts = datetime.now(timezone.utc).strftime("%H:%M:%S")
    print(f"  {_DIM}[{ts}] keep-alive {url}: {status}{_RESET}", end="\r")
    sys.stdout.flush()


def print_keepalive_start(url: str, interval: int) -> None:
    """Print a message when the keep-alive loop begins."""
    print(
        f"  {_BOLD}{_BLUE}> Keep-alive:{_RESET} {_WHITE}{url}{_RESET}"
        f"  {_DIM}[every {interval}s]{_RESET}"
    )


def print_error(source: str, message: str) -> None:
    """Print an error message."""
    print(
        f"  {_GRAY}[{_now()}]{_RESET} {_RED}ERROR{_RESET} "
        f"{_BOLD}{source}:{_RESET} {message}"
    )


def print_warning(message: str) -> None:
    """Print a non-fatal warning."""
    print(f"  {_YELLOW}WARNING{_RESET} {message}")


def print_shutdown() -> None:
    """Print shutdown message."""
    print(f"\n{_BOLD}{_CYAN}Server stopped. Goodbye!{_RESET}\n")
