"""Project lifecycle: topic operations, status rules and the project orchestrator."""
