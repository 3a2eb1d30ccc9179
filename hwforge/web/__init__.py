"""Web surface: FastAPI app streaming orchestrator progress."""
