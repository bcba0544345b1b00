"""HTTP boundary for the health report."""
