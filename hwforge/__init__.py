"""hwforge — autonomous hardware design orchestrator.

Takes a free-text hardware idea through five stages (spec, board,
enclosure, firmware, export) by letting a language model drive a fixed
set of tools against a durable project document.
"""

__version__ = "0.1.0"
