"""
Entry point for running access_console as a module.

This file enables:
- `python -m access_console role_permissions 3`
- `uv run python -m access_console user_roles 12`
"""

from __future__ import annotations

from access_console import main

if __name__ == "__main__":
    main()
