"""CLI utility modules."""
