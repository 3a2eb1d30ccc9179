"""Agent configuration constants."""

MAX_TOKENS = 8192
THINKING_BUDGET = 5000
ORCHESTRATOR_TEMPERATURE = 0.3
MAX_ITERATIONS = 100       # hard stop for one run
MAX_MESSAGES = 15          # trim the conversation above this
TRIM_TO = 8                # most recent messages kept when trimming
