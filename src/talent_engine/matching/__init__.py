"""Job requisitions, candidates, matches, and agent run logs."""
