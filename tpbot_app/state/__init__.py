"""Purchase-flow state machine, polling loops and area search."""
