"""
Decides whether the agent should claim a role it does not hold.
"""
import logging
import random
from typing import Optional

from .beliefs import RoundContext
from .models import AgentOptions, GameStateSnapshot
from .roles import resolve_role
from .simulator import WIN, simulate

logger = logging.getLogger(__name__)

# More distinct claims than this and we stop inventing new ones
MAX_OUTSTANDING_CLAIMS = 2


class BluffAdvisor:
    """
    Bernoulli-gated bluffing policy.

    `context.bluff_choice` says whether we are in a bluffing mood at all. It is
    redrawn with `chance_to_bluff` every time we actually bluff.
    """

    def __init__(
        self,
        snapshot: GameStateSnapshot,
        context: RoundContext,
        options: AgentOptions,
        rng: random.Random,
        log: Optional[logging.Logger] = None,
    ):
        self.snapshot = snapshot
        self.context = context
        self.options = options
        self.rng = rng
        self.log = log or logger

    def should_bluff(self, action_or_role: str) -> bool:
        role = resolve_role(action_or_role, self.snapshot.roles)
        if role is None:
            return False
        beliefs = self.context.beliefs
        me = self.snapshot.player_idx
        already_claimed = beliefs.has_claimed(me, role)

        if role in self.context.called_bluffs:
            # Caught bluffing this role before
            return False
        if not self.context.bluff_choice and not already_claimed:
            return False
        if beliefs.claim_count(me) > MAX_OUTSTANDING_CLAIMS and not already_claimed:
            return False
        if self.snapshot.is_end_game():
            opponent_idx = self.snapshot.players_by_strength()[0]
            result = simulate(
                self.snapshot,
                opponent_idx,
                beliefs.claimed_roles(opponent_idx),
                self.options.search_horizon,
                bluffed_role=role,
                log=self.log,
            )
            if result == WIN:
                # A claim that obviously wins the game is likely to be challenged
                self.log.debug(f"not bluffing {role}: it would win the game")
                return False
        return True

    def reroll(self) -> bool:
        self.context.bluff_choice = self.rng.random() < self.options.chance_to_bluff
        return self.context.bluff_choice
