"""Analytics module — availability, fair-share allocation and team rollups."""
