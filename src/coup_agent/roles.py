"""
Role and action catalog for Coup.

Actions name the roles allowed to perform them and the roles that can block them.
The catalog is read-only; which roles are actually in play comes from each snapshot.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

DUKE = "duke"
CAPTAIN = "captain"
ASSASSIN = "assassin"
AMBASSADOR = "ambassador"
CONTESSA = "contessa"
INQUISITOR = "inquisitor"

# Strongest first
RANKED_ROLES: Tuple[str, ...] = (DUKE, ASSASSIN, CAPTAIN, INQUISITOR, CONTESSA, AMBASSADOR)


@dataclass(frozen=True)
class ActionSpec:
    """A single action and its rules"""
    name: str
    roles: Tuple[str, ...] = ()
    blocked_by: Tuple[str, ...] = ()
    cost: int = 0

    @property
    def needs_role(self) -> bool:
        return bool(self.roles)


ACTIONS: Dict[str, ActionSpec] = {
    spec.name: spec
    for spec in (
        ActionSpec("income"),
        ActionSpec("foreign-aid", blocked_by=(DUKE,)),
        ActionSpec("coup", cost=7),
        ActionSpec("tax", roles=(DUKE,)),
        ActionSpec("assassinate", roles=(ASSASSIN,), blocked_by=(CONTESSA,), cost=3),
        ActionSpec("steal", roles=(CAPTAIN,), blocked_by=(CAPTAIN, AMBASSADOR, INQUISITOR)),
        ActionSpec("exchange", roles=(AMBASSADOR, INQUISITOR)),
        ActionSpec("interrogate", roles=(INQUISITOR,)),
    )
}


def get_action(name: Optional[str]) -> Optional[ActionSpec]:
    if name is None:
        return None
    return ACTIONS.get(name)


def role_for_action(action_name: Optional[str], roles_in_play: Iterable[str]) -> Optional[str]:
    """First role in play that may perform the action, or None for role-less actions"""
    action = get_action(action_name)
    if action is None or not action.needs_role:
        return None
    in_play = set(roles_in_play)
    for role in action.roles:
        if role in in_play:
            return role
    return None


def resolve_role(action_or_role: str, roles_in_play: Iterable[str]) -> Optional[str]:
    """
    Map an action name or role name to the role being claimed.

    Returns None for actions that need no role (income, foreign aid, coup).
    Anything that is not an action is taken to be a role already.
    """
    action = get_action(action_or_role)
    if action is not None:
        if not action.needs_role:
            return None
        return role_for_action(action_or_role, roles_in_play) or action.roles[0]
    return action_or_role


def cost_of(action_name: Optional[str]) -> int:
    action = get_action(action_name)
    return action.cost if action else 0


def blockers_for(action_name: Optional[str]) -> Tuple[str, ...]:
    action = get_action(action_name)
    return action.blocked_by if action else ()


def blockers_in_play(action_name: Optional[str], roles_in_play: Iterable[str]) -> List[str]:
    in_play = set(roles_in_play)
    return [role for role in blockers_for(action_name) if role in in_play]
