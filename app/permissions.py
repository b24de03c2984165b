"""Actor capabilities and the access rules guarding list mutations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, IntFlag
from typing import Awaitable, Callable, Iterable

from .errors import ActorNotFound, PermissionDenied

logger = logging.getLogger(__name__)


class Permission(IntFlag):
    """Capabilities granted to an actor, stored as a bitmask."""

    NONE = 0
    ADMIN = 2
    MANAGE_USERS = 8
    MANAGE_LISTS = 8192
    VIEW_LISTS = 16384
    CREATE_LISTS = 32768


def has_permission(
    granted: int,
    required: Permission | Iterable[Permission],
    *,
    require_any: bool = False,
) -> bool:
    """Return whether ``granted`` covers ``required``.

    Multiple permissions must all be held unless ``require_any`` is set.
    Administrators satisfy every check.
    """

    granted_flags = Permission(granted)
    if Permission.ADMIN in granted_flags:
        return True
    if isinstance(required, Permission):
        wanted = [required]
    else:
        wanted = list(required)
    if not wanted:
        return True
    checks = (permission in granted_flags for permission in wanted)
    return any(checks) if require_any else all(checks)


@dataclass(frozen=True, slots=True)
class ActorRef:
    """Identity and capabilities of an actor, detached from the ORM."""

    id: int
    permissions: int = 0

    def can(self, *required: Permission, require_any: bool = False) -> bool:
        return has_permission(self.permissions, required, require_any=require_any)


@dataclass(frozen=True, slots=True)
class ListTarget:
    """The parts of a list that access decisions depend on."""

    id: int
    owner_id: int
    auto_update: bool = False


class Verdict(str, Enum):
    DENY = "deny"
    DELEGATE = "delegate"
    SELF = "self"


@dataclass(frozen=True, slots=True)
class AccessRequest:
    target: ListTarget
    caller: ActorRef
    requested_actor_id: int | None = None

    @property
    def delegating(self) -> bool:
        return (
            self.requested_actor_id is not None
            and self.requested_actor_id != self.caller.id
        )

    @property
    def caller_owns_list(self) -> bool:
        return self.target.owner_id == self.caller.id


@dataclass(frozen=True, slots=True)
class AccessRule:
    name: str
    applies: Callable[[AccessRequest], bool]
    verdict: Verdict
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class AccessDecision:
    verdict: Verdict
    rule: str
    reason: str | None = None


# Evaluated top to bottom; the first applicable rule decides.
ACCESS_RULES: tuple[AccessRule, ...] = (
    AccessRule(
        name="auto-managed",
        applies=lambda request: request.target.auto_update,
        verdict=Verdict.DENY,
        reason="list is auto-managed",
    ),
    AccessRule(
        name="delegation-refused",
        applies=lambda request: request.delegating
        and not request.caller.can(
            Permission.MANAGE_USERS, Permission.MANAGE_LISTS, require_any=True
        ),
        verdict=Verdict.DENY,
        reason="insufficient privilege to act as another actor",
    ),
    AccessRule(
        name="delegation",
        applies=lambda request: request.delegating,
        verdict=Verdict.DELEGATE,
    ),
    AccessRule(
        name="not-owner",
        applies=lambda request: not request.caller_owns_list
        and not request.caller.can(Permission.MANAGE_LISTS),
        verdict=Verdict.DENY,
        reason="insufficient privilege to modify this list",
    ),
    AccessRule(
        name="caller",
        applies=lambda request: True,
        verdict=Verdict.SELF,
    ),
)


def evaluate(
    request: AccessRequest, rules: tuple[AccessRule, ...] = ACCESS_RULES
) -> AccessDecision:
    """Return the decision of the first rule applying to ``request``."""

    for rule in rules:
        if rule.applies(request):
            return AccessDecision(verdict=rule.verdict, rule=rule.name, reason=rule.reason)
    raise RuntimeError("Access rules did not reach a decision")


ActorLoader = Callable[[int], Awaitable[ActorRef | None]]


async def authorize(
    target: ListTarget,
    requested_actor_id: int | None,
    caller: ActorRef,
    load_actor: ActorLoader,
) -> ActorRef:
    """Return the actor a mutation of ``target`` is recorded for.

    Raises :class:`PermissionDenied` when the caller may not mutate the list
    and :class:`ActorNotFound` when a delegated actor does not exist.
    """

    decision = evaluate(
        AccessRequest(
            target=target, caller=caller, requested_actor_id=requested_actor_id
        )
    )
    if decision.verdict is Verdict.DENY:
        logger.info(
            "Actor %s refused on list %s (%s)", caller.id, target.id, decision.rule
        )
        raise PermissionDenied(decision.reason or "permission denied")
    if decision.verdict is Verdict.DELEGATE:
        delegated_id = int(requested_actor_id or 0)
        actor = await load_actor(delegated_id)
        if actor is None:
            raise ActorNotFound(delegated_id)
        return actor
    return caller


def can_view_list(target: ListTarget, caller: ActorRef) -> bool:
    return target.owner_id == caller.id or caller.can(
        Permission.MANAGE_LISTS, Permission.VIEW_LISTS, require_any=True
    )


def can_delete_list(target: ListTarget, caller: ActorRef) -> bool:
    return target.owner_id == caller.id or caller.can(Permission.MANAGE_LISTS)


def require_permissions(
    caller: ActorRef, *required: Permission, require_any: bool = True
) -> None:
    """Raise :class:`PermissionDenied` unless ``caller`` holds ``required``."""

    if not caller.can(*required, require_any=require_any):
        raise PermissionDenied("You do not have permission to perform this action.")
