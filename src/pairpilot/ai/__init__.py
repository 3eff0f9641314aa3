"""Tool calls, orchestration and conversation management."""
