"""Tool handlers, one module per design stage plus control tools.

Every handler is ``async (ctx: ToolContext, args: dict) -> dict``. A
returned ``{"error": ...}`` is a normal result the model gets to see.
"""

from . import spec_tools, board_tools, enclosure_tools, firmware_tools, control_tools

__all__ = ["spec_tools", "board_tools", "enclosure_tools", "firmware_tools", "control_tools"]
