"""Domain events emitted by services to optional hooks."""
