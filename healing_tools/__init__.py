"""
================================================================================
Healing Tools
================================================================================

Operator utilities around the self-healing locator framework.

Modules:
    - common: Shared configuration access and logging setup
    - locator_cli: `locator-healing` command (reconcile, alternatives, healed)

Example:
    from healing_tools.common import init_logger
    from healing_tools.locator_cli import main

    init_logger()
    main(["healed", "list"])

================================================================================
"""

__version__ = "1.0.0"

__all__ = [
    "common",
    "locator_cli",
]
