"""CLI output utilities and formatting."""

from colorama import Fore, Style

BANNER = f"""
{Fore.CYAN}{Style.BRIGHT}graft{Style.RESET_ALL} {Fore.WHITE}- local version control on a content-addressed commit graph{Style.RESET_ALL}
"""


def success(message: str) -> str:
    """Format success message in green."""
    return f"{Fore.GREEN}✓ {message}{Style.RESET_ALL}"


def info(message: str) -> str:
    """Format info message in cyan."""
    return f"{Fore.CYAN}→ {message}{Style.RESET_ALL}"


def warning(message: str) -> str:
    """Format warning message in yellow."""
    return f"{Fore.YELLOW}⚠ {message}{Style.RESET_ALL}"


def error(message: str) -> str:
    """Format error message in red."""
    return f"{Fore.RED}✗ {message}{Style.RESET_ALL}"


def short(commit_hash: str) -> str:
    """Abbreviated hash in yellow."""
    return f"{Fore.YELLOW}{commit_hash[:7]}{Style.RESET_ALL}"
