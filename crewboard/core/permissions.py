"""
Permission evaluation.

A closed decision table keyed by (Resource, Action). Each rule lists relation
predicates; the actor is allowed if any predicate holds, and admins are allowed
everywhere a rule does not opt out of the override. Pairs missing from the
table are denied.

Predicates are evaluated fresh on every call against the documents the caller
loaded for this request. Nothing is cached.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass
from uuid import UUID

from crewboard.core.documents import (
    Actor,
    Document,
    ProjectDocument,
    TaskDocument,
    TeamDocument,
    UserDocument,
)
from crewboard.core.exceptions import Forbidden

logger = logging.getLogger(__name__)


class Resource(str, enum.Enum):
    user = "user"
    team = "team"
    project = "project"
    task = "task"


class Action(str, enum.Enum):
    create = "create"
    read_one = "read_one"
    read_many = "read_many"
    update = "update"
    update_members = "update_members"
    update_status = "update_status"
    update_role = "update_role"
    delete = "delete"


class Verdict(str, enum.Enum):
    allow = "allow"
    deny = "deny"


@dataclass(frozen=True)
class Ancestry:
    """Resolved parents of the target: a project's team, a task's project and team."""

    team: TeamDocument | None = None
    project: ProjectDocument | None = None


NO_ANCESTRY = Ancestry()

Predicate = Callable[[Actor, Document | None, Ancestry], bool]


# ---------------------------------------------------------------------------
# Relation predicates
# ---------------------------------------------------------------------------

def _team_of(target: Document | None, ancestry: Ancestry) -> TeamDocument | None:
    if isinstance(target, TeamDocument):
        return target
    return ancestry.team


def _project_of(target: Document | None, ancestry: Ancestry) -> ProjectDocument | None:
    if isinstance(target, ProjectDocument):
        return target
    return ancestry.project


def authenticated(actor: Actor, target: Document | None, ancestry: Ancestry) -> bool:
    return True


def is_admin(actor: Actor, target: Document | None, ancestry: Ancestry) -> bool:
    return actor.is_admin


def is_manager(actor: Actor, target: Document | None, ancestry: Ancestry) -> bool:
    return actor.is_manager


def is_self(actor: Actor, target: Document | None, ancestry: Ancestry) -> bool:
    return isinstance(target, UserDocument) and target.id == actor.id


def is_creator(actor: Actor, target: Document | None, ancestry: Ancestry) -> bool:
    """The actor created ``target`` itself. Users have no creator."""
    if not isinstance(target, (TeamDocument, ProjectDocument, TaskDocument)):
        return False
    return target.created_by == actor.id


def is_team_creator(actor: Actor, target: Document | None, ancestry: Ancestry) -> bool:
    return is_creator(actor, _team_of(target, ancestry), ancestry)


def is_project_creator(actor: Actor, target: Document | None, ancestry: Ancestry) -> bool:
    return is_creator(actor, _project_of(target, ancestry), ancestry)


def is_team_member(actor: Actor, target: Document | None, ancestry: Ancestry) -> bool:
    team = _team_of(target, ancestry)
    return team is not None and actor.id in team.members


def is_project_member(actor: Actor, target: Document | None, ancestry: Ancestry) -> bool:
    project = _project_of(target, ancestry)
    return project is not None and actor.id in project.members


def is_task_assignee(actor: Actor, target: Document | None, ancestry: Ancestry) -> bool:
    return isinstance(target, TaskDocument) and actor.id in target.assignees


# ---------------------------------------------------------------------------
# Decision table
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Rule:
    any_of: tuple[Predicate, ...]
    admin_override: bool = True


_TASK_MANAGERS = (is_team_creator, is_project_creator, is_manager)

PERMISSIONS: dict[tuple[Resource, Action], Rule] = {
    # Teams
    (Resource.team, Action.create): Rule((is_manager,)),
    (Resource.team, Action.read_one): Rule((is_team_member, is_team_creator)),
    (Resource.team, Action.read_many): Rule((authenticated,)),
    (Resource.team, Action.update): Rule((is_team_creator,)),
    (Resource.team, Action.update_members): Rule((is_team_creator,)),
    (Resource.team, Action.delete): Rule((is_team_creator,)),
    # Projects
    (Resource.project, Action.create): Rule((is_team_creator, is_manager)),
    (Resource.project, Action.read_one): Rule((is_project_member, is_team_creator)),
    (Resource.project, Action.read_many): Rule((authenticated,)),
    (Resource.project, Action.update): Rule((is_team_creator, is_manager, is_project_member)),
    (Resource.project, Action.update_members): Rule((is_team_creator, is_manager)),
    (Resource.project, Action.delete): Rule((is_team_creator, is_manager)),
    # Tasks
    (Resource.task, Action.create): Rule(_TASK_MANAGERS),
    (Resource.task, Action.read_one): Rule((is_task_assignee, is_project_member, is_team_creator)),
    (Resource.task, Action.read_many): Rule((authenticated,)),
    (Resource.task, Action.update): Rule(_TASK_MANAGERS),
    (Resource.task, Action.update_members): Rule(_TASK_MANAGERS),
    # Only the assignee's own entry can change, so an admin without one has nothing to update.
    (Resource.task, Action.update_status): Rule((is_task_assignee,), admin_override=False),
    (Resource.task, Action.delete): Rule(_TASK_MANAGERS),
    # Users
    (Resource.user, Action.read_one): Rule((authenticated,)),
    (Resource.user, Action.read_many): Rule((is_self,)),
    (Resource.user, Action.update): Rule((is_self,)),
    (Resource.user, Action.update_role): Rule((is_admin,)),
    (Resource.user, Action.delete): Rule((is_self,)),
}


_VERBS = {
    Action.create: "create",
    Action.read_one: "view",
    Action.read_many: "view",
    Action.update: "update",
    Action.update_members: "change the members of",
    Action.update_status: "update the status of",
    Action.update_role: "change the role of",
    Action.delete: "delete",
}


def authorize(
    actor: Actor,
    action: Action,
    resource: Resource,
    target: Document | None = None,
    ancestry: Ancestry = NO_ANCESTRY,
) -> Verdict:
    """Return the verdict for ``actor`` performing ``action`` on ``target``.

    ``target`` is None for creates and for unscoped listings; in that case
    predicates resolve against ``ancestry`` (the parent the new entity will
    hang off).
    """
    rule = PERMISSIONS.get((resource, action))
    if rule is None:
        return Verdict.deny
    if rule.admin_override and actor.is_admin:
        return Verdict.allow
    if any(predicate(actor, target, ancestry) for predicate in rule.any_of):
        return Verdict.allow
    return Verdict.deny


def ensure_allowed(
    actor: Actor,
    action: Action,
    resource: Resource,
    target: Document | None = None,
    ancestry: Ancestry = NO_ANCESTRY,
) -> None:
    """Raise Forbidden unless the table allows the operation."""
    if authorize(actor, action, resource, target, ancestry) is Verdict.allow:
        return
    target_id: UUID | None = getattr(target, "id", None)
    logger.info(
        "Denied %s on %s %s for actor=%s role=%s",
        action.value, resource.value, target_id, actor.id, actor.role.value,
    )
    raise Forbidden(f"Not authorized to {_VERBS[action]} this {resource.value}")
