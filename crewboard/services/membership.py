"""
Membership validation.

Checks a proposed member list against the set it must be drawn from before
anything is written. Reads only.
"""

from __future__ import annotations

import logging

from crewboard.core.documents import Collection, TeamDocument
from crewboard.core.exceptions import ValidationFailed
from crewboard.core.idset import IdSet
from crewboard.repositories import DocumentRepository

logger = logging.getLogger(__name__)


def invalid_members(proposed: IdSet, allowed: IdSet) -> IdSet:
    """Ids in ``proposed`` that are not in ``allowed``."""
    return IdSet(uid for uid in proposed if uid not in allowed)


def _reject(message: str, invalid: IdSet) -> ValidationFailed:
    logger.info("%s: %s", message, [str(uid) for uid in invalid])
    return ValidationFailed(message, details={"invalid": [str(uid) for uid in invalid]})


def validate_project_members(proposed: IdSet, team: TeamDocument) -> None:
    """Project members must be a subset of the team's members."""
    invalid = invalid_members(proposed, team.members)
    if invalid:
        raise _reject("One or more members are not part of the team", invalid)


def validate_assignees(proposed: IdSet, team: TeamDocument) -> None:
    """Assignees are checked against the team of the task's project, not the project."""
    invalid = invalid_members(proposed, team.members)
    if invalid:
        raise _reject("One or more assigned members are not part of the project team", invalid)


async def validate_team_members(proposed: IdSet, repository: DocumentRepository) -> None:
    """Every proposed team member must be an existing user."""
    existing = await repository.existing_ids(Collection.users, proposed)
    invalid = invalid_members(proposed, existing)
    if invalid:
        raise _reject("One or more member IDs are invalid", invalid)
