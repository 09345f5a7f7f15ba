"""Leave module — requests, reason catalogue and balance calculations."""
