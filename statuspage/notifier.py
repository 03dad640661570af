"""
Console Notifier — startup and shutdown output.

Prints the banner, the listening address and warnings with ANSI colors.
Per-event diagnostics go through ``logging`` instead.
"""

from __future__ import annotations

from datetime import datetime, timezone

from statuspage import __version__

# ANSI color codes for terminal styling
_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_YELLOW = "\033[93m"
_BLUE = "\033[94m"
_CYAN = "\033[96m"
_WHITE = "\033[97m"
_GRAY = "\033[90m"


def print_banner() -> None:
    """Print the startup banner."""
    banner = f"""
{_BOLD}{_CYAN}+------------------------------------------------------------------+
|          Status Page Backend -- Realtime Server  v{__version__:<15}|
|          Services * Incidents * Live WebSocket updates           |
+------------------------------------------------------------------+{_RESET}
"""
    print(banner)


def print_listening(host: str, port: int) -> None:
    """Print the endpoints once the server is bound."""
    base = f"http://{host}:{port}"
    print(f"  {_BOLD}{_BLUE}> Server running:{_RESET} {_WHITE}{base}{_RESET}")
    print(f"  {_DIM}Health check: {base}/health{_RESET}")
    print(f"  {_DIM}API endpoints: {base}/api{_RESET}")
    print(f"  {_DIM}Socket.IO: {base}/socket.io/{_RESET}\n")


def print_warning(message: str) -> None:
    ts = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
    print(f"  {_GRAY}[{ts}]{_RESET} {_YELLOW}WARNING{_RESET} {message}")


def print_shutdown() -> None:
    """Print shutdown message."""
    print(f"\n{_BOLD}{_CYAN}Server stopped. Goodbye!{_RESET}\n")
