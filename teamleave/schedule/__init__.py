"""Schedule module — working-day calendar and grouping keys."""
