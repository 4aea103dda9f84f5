"""
sysdef command-line interface.

Usage:
    sysdef list
    sysdef show <system>
    sysdef load <system>
    sysdef build [<system>]
    sysdef graph [--check] [--dot]
    sysdef clean <system>
    sysdef info
"""

__cli_name__ = "sysdef"


def main():
    """Wrapper to avoid eager import of __main__ which causes warnings with -m."""
    from .__main__ import main as _main
    return _main()
