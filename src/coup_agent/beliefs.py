"""
Claim tracking for Coup players.

Every action or block is a public claim to hold a role. The tracker remembers
who claimed what during the current round, and forgets a claim as soon as the
game shows it is no longer valid (the card was revealed, the claim was
challenged, or the player exchanged cards).
"""
import logging
import random
import re
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from .models import GameStateSnapshot, Phase
from .roles import resolve_role, role_for_action

logger = logging.getLogger(__name__)

REVEALED_PATTERN = re.compile(r"\{([0-9]+)\} revealed ([a-z]+)")


@dataclass(frozen=True)
class RoleClaim:
    """The most recent claim that could still be challenged"""
    role: str
    player_idx: int


class BeliefTracker:
    """Roles each player (including ourselves) has claimed this round."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.claims: Dict[int, Set[str]] = defaultdict(set)
        self.last_role_claim: Optional[RoleClaim] = None
        self.log = log or logger

    def record_claim(self, player_idx: int, action_or_role: str, roles_in_play: Iterable[str]) -> Optional[str]:
        """
        Remember that a player claimed a role by acting or blocking.

        Args:
            player_idx: Player making the claim
            action_or_role: Action name (e.g. "steal") or role name (e.g. "ambassador")
            roles_in_play: Roles used in this game variant

        Returns:
            The claimed role, or None if the action needs no role
        """
        role = resolve_role(action_or_role, roles_in_play)
        if role is None:
            return None
        self.claims[player_idx].add(role)
        self.log.debug(f"player {player_idx} claimed {role}")
        return role

    def forget_claim(self, player_idx: int, role: Optional[str]) -> None:
        if role is None:
            return
        self.claims[player_idx].discard(role)

    def clear(self, player_idx: int) -> None:
        self.claims[player_idx] = set()

    def has_claimed(self, player_idx: int, role: str) -> bool:
        return role in self.claims[player_idx]

    def claim_count(self, player_idx: int) -> int:
        return len(self.claims[player_idx])

    def claimed_roles(self, player_idx: int) -> List[str]:
        return sorted(self.claims[player_idx])

    def update_last_claim(self, snapshot: GameStateSnapshot) -> Optional[RoleClaim]:
        """Work out which claim a "challenged" history event would refer to."""
        turn = snapshot.state
        role: Optional[str] = None
        claimant: Optional[int] = None
        if turn.name == Phase.ACTION_RESPONSE:
            role = role_for_action(turn.action, snapshot.roles)
            claimant = turn.player_idx
        elif turn.name == Phase.BLOCK_RESPONSE:
            role = turn.blocking_role
            claimant = turn.target

        if role is not None and claimant is not None:
            self.last_role_claim = RoleClaim(role=role, player_idx=claimant)
        else:
            self.last_role_claim = None
        return self.last_role_claim

    def observe_history(self, message: str) -> None:
        """
        Update claims from a free-text history event.

        "{2} revealed duke": player 2 no longer holds the duke they may have claimed.
        "... challenged ...": a challenged claim is void either way. A caught bluff
        was never true, and a proven claim gets its card swapped for a new one.
        """
        match = REVEALED_PATTERN.search(message)
        if match:
            player_idx = int(match.group(1))
            role = match.group(2)
            self.forget_claim(player_idx, role)
            self.log.debug(f"player {player_idx} revealed {role}")
        elif message.find(" challenged") > 0:
            claim = self.last_role_claim
            if claim is not None:
                self.forget_claim(claim.player_idx, claim.role)
                self.log.debug(f"player {claim.player_idx} lost claim to {claim.role} after a challenge")


@dataclass
class RoundContext:
    """Everything the agent remembers for one game; rebuilt when a new game starts."""
    beliefs: BeliefTracker
    bluff_choice: bool
    called_bluffs: Set[str] = field(default_factory=set)

    @classmethod
    def start(cls, rng: random.Random, chance_to_bluff: float,
              log: Optional[logging.Logger] = None) -> "RoundContext":
        return cls(
            beliefs=BeliefTracker(log=log),
            bluff_choice=rng.random() < chance_to_bluff,
        )
