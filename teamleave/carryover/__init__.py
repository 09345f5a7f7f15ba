"""Year-end carryover module."""
