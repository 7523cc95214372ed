"""HTTP boundary for the publishing engine."""
