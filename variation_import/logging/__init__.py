"""Application logging and JSON Lines error log."""
