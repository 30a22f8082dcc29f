"""
Decision tables for the Coup AI.

A TurnPolicy is built for one snapshot and answers the question the current
phase asks of us: what to play, whether to block or challenge, which card to
give up and which cards to keep after an exchange.
"""
import logging
import random
from typing import List, Optional

from .beliefs import RoundContext
from .bluffing import BluffAdvisor
from .models import AgentOptions, Command, CommandType, GameStateSnapshot, Phase
from .roles import (
    ASSASSIN,
    CAPTAIN,
    DUKE,
    RANKED_ROLES,
    blockers_for,
    blockers_in_play,
    cost_of,
    role_for_action,
)
from .simulator import LOSS, WIN, simulate

logger = logging.getLogger(__name__)

# Worth challenging whoever claims these, whoever they are acting against
ALWAYS_CHALLENGEABLE = {"tax"}
# Worth challenging only when we are the actor or the target
PERSONAL_ACTIONS = {"steal", "assassinate"}


def allow() -> Command:
    return Command(command=CommandType.ALLOW)


def challenge() -> Command:
    return Command(command=CommandType.CHALLENGE)


def block(role: str) -> Command:
    return Command(command=CommandType.BLOCK, blocking_role=role)


def play(action: str, target: Optional[int] = None) -> Command:
    return Command(command=CommandType.PLAY_ACTION, action=action, target=target)


def choose_exchange(needed: int, available: List[str]) -> List[str]:
    """
    Pick the cards to keep after an exchange.

    Takes the best distinct roles on offer, then pads with the first option
    when there are not enough distinct roles.
    """
    chosen: List[str] = []
    for _ in range(needed):
        for candidate in RANKED_ROLES:
            if candidate not in chosen and candidate in available:
                chosen.append(candidate)
                break
    while len(chosen) < needed and available:
        chosen.append(available[0])
    return chosen


def choose_reveal(influence: List[str]) -> Optional[str]:
    """Weakest held role, never the top-ranked one while another is held"""
    for role in reversed(RANKED_ROLES[1:]):
        if role in influence:
            return role
    return None


class TurnPolicy:
    """Decisions for a single snapshot."""

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
        self.beliefs = context.beliefs
        self.options = options
        self.rng = rng
        self.log = log or logger
        self.bluffs = BluffAdvisor(snapshot, context, options, rng, log=self.log)

    @property
    def me(self) -> int:
        return self.snapshot.player_idx

    def track_claim(self, player_idx: Optional[int], action_or_role: Optional[str]) -> None:
        if player_idx is None or action_or_role is None:
            return
        self.beliefs.record_claim(player_idx, action_or_role, self.snapshot.roles)

    # =========================================================================
    # TARGETS
    # =========================================================================

    def strongest_player(self) -> Optional[int]:
        opponents = self.snapshot.players_by_strength()
        return opponents[0] if opponents else None

    def can_block(self, player_idx: int, action_name: str) -> bool:
        claimed = self.beliefs.claimed_roles(player_idx)
        return any(role in claimed for role in blockers_for(action_name))

    def target_for(self, action_name: str) -> Optional[int]:
        """Strongest opponent who has not claimed a role that blocks the action"""
        for idx in self.snapshot.players_by_strength():
            if not self.can_block(idx, action_name):
                return idx
        return None

    # =========================================================================
    # OUR TURN
    # =========================================================================

    def play_action(self, action: str, target: Optional[int] = None) -> Command:
        self.log.debug(f"playing {action}")
        self.track_claim(self.me, action)
        return play(action, target)

    def play_our_turn(self) -> Command:
        influence = self.snapshot.our_influence()
        cash = self.snapshot.me.cash
        self.log.debug(f"influence: {influence}")

        if cash >= 10:
            return self.play_action("coup", self.strongest_player())
        assassin_target = self.target_for("assassinate")
        if ASSASSIN in influence and cash >= cost_of("assassinate") and assassin_target is not None:
            return self.play_action("assassinate", assassin_target)
        if cash >= cost_of("coup"):
            return self.play_action("coup", self.strongest_player())
        steal_target = self.target_for("steal")
        if CAPTAIN in influence and steal_target is not None:
            return self.play_action("steal", steal_target)
        if DUKE in influence:
            return self.play_action("tax")

        # No good moves - check whether to bluff
        possible_bluffs = []
        can_afford_assassin = cash >= cost_of("assassinate")
        if can_afford_assassin and assassin_target is not None and self.bluffs.should_bluff("assassinate"):
            possible_bluffs.append(("assassinate", assassin_target))
        if steal_target is not None and self.bluffs.should_bluff("steal"):
            possible_bluffs.append(("steal", steal_target))
        if self.bluffs.should_bluff("tax"):
            possible_bluffs.append(("tax", None))

        if possible_bluffs:
            action, target = possible_bluffs[self.rng.randrange(len(possible_bluffs))]
            command = self.play_action(action, target)
            self.bluffs.reroll()
            return command

        if ASSASSIN not in influence:
            # No captain, duke or assassin: look for better cards
            return self.play_action("exchange")
        # We have an assassin but cannot afford to use it yet
        return self.play_action("income")

    # =========================================================================
    # RESPONSES
    # =========================================================================

    def _blockable_by_us(self) -> bool:
        turn = self.snapshot.state
        return turn.action == "foreign-aid" or turn.target == self.me

    def blocking_role(self) -> Optional[str]:
        """A blocking role we really hold"""
        if not self._blockable_by_us():
            return None
        influence = self.snapshot.our_influence()
        for role in blockers_for(self.snapshot.state.action):
            if role in influence:
                return role
        return None

    def bluffed_blocking_role(self) -> Optional[str]:
        if not self._blockable_by_us():
            return None
        candidates = blockers_in_play(self.snapshot.state.action, self.snapshot.roles)
        if not candidates:
            return None
        self.rng.shuffle(candidates)
        for role in candidates:
            if self.bluffs.should_bluff(role):
                self.bluffs.reroll()
                return role
        return None

    def respond_to_action(self) -> Command:
        turn = self.snapshot.state
        self.track_claim(turn.player_idx, turn.action)

        if turn.action == "steal" and turn.target == self.me and self.snapshot.me.cash == 0:
            # Nothing to lose
            self.log.debug("allowing")
            return allow()

        role = self.blocking_role()
        if role:
            self.log.debug(f"blocking with {role}")
            self.track_claim(self.me, role)
            return block(role)

        # A failed challenge cannot be escalated from the final response, so no bluffing there
        if turn.name == Phase.ACTION_RESPONSE:
            if self.should_challenge():
                self.log.debug("challenging")
                return challenge()
            role = self.bluffed_blocking_role()
            if role:
                self.log.debug(f"blocking with {role} (bluff)")
                self.track_claim(self.me, role)
                return block(role)

        self.log.debug("allowing")
        return allow()

    def respond_to_block(self) -> Command:
        turn = self.snapshot.state
        self.track_claim(turn.target, turn.blocking_role)
        if self.should_challenge():
            self.log.debug("challenging")
            return challenge()
        self.log.debug("allowing")
        return allow()

    def action_is_worth_challenging(self) -> bool:
        turn = self.snapshot.state
        if turn.action in ALWAYS_CHALLENGEABLE:
            return True
        # Someone acting against us, or blocking our own steal/assassination
        return turn.action in PERSONAL_ACTIONS and self.me in (turn.player_idx, turn.target)

    def should_challenge(self) -> bool:
        if self.snapshot.state.name == Phase.FINAL_ACTION_RESPONSE:
            return False
        if not self.action_is_worth_challenging():
            return False
        if self.snapshot.is_end_game():
            opponent_idx = self.snapshot.players_by_strength()[0]
            result = simulate(
                self.snapshot,
                opponent_idx,
                self.beliefs.claimed_roles(opponent_idx),
                self.options.search_horizon,
                log=self.log,
            )
            if result == LOSS:
                # The opponent would win otherwise
                return True
            if result == WIN:
                return False
        return self.rng.random() < self.options.chance_to_challenge

    # =========================================================================
    # REVEAL AND EXCHANGE
    # =========================================================================

    def update_called_bluffs(self) -> None:
        turn = self.snapshot.state
        if self.options.strict_called_bluffs and turn.reason != "successful-challenge":
            return
        if turn.target == self.me and turn.blocking_role:
            # We bluffed a blocking role
            self.context.called_bluffs.add(turn.blocking_role)
        elif turn.player_idx == self.me and turn.action:
            # We bluffed an action
            role = role_for_action(turn.action, self.snapshot.roles)
            if role is not None:
                self.context.called_bluffs.add(role)

    def reveal(self) -> Command:
        influence = self.snapshot.our_influence()
        role = choose_reveal(influence)
        if role is None:
            self.log.debug("failed to choose a role to reveal")
            role = influence[0]
        # Can't keep claiming a card everyone has seen us lose
        self.beliefs.forget_claim(self.me, role)
        return Command(command=CommandType.REVEAL, role=role)

    def exchange(self) -> Command:
        needed = len(self.snapshot.our_influence())
        chosen = choose_exchange(needed, self.snapshot.state.exchange_options)
        self.log.debug(f"chose {chosen}")
        # After exchanging our roles we can claim anything
        self.beliefs.clear(self.me)
        return Command(command=CommandType.EXCHANGE, roles=chosen)
