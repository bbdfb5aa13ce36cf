"""Decision engine: dedup cache, orchestrator, evaluation pipeline."""
