"""Team module — team record, settings and settings guards."""

from teamleave.team.schemas import Team, TeamSettings

__all__ = ["Team", "TeamSettings"]
