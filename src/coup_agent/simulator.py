"""
End-game forecast between the agent and its last remaining opponent.

Both sides are assumed to play a fixed "best move" every turn. The forecast
answers one question: who runs out of influence first within the search horizon?

Known simplifications:
- a player keeps every claimed/held role even after losing an influence
- nobody takes foreign aid
"""
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set

from .models import GameStateSnapshot, Phase
from .roles import ASSASSIN, CAPTAIN, DUKE, blockers_for, cost_of

logger = logging.getLogger(__name__)

OPPONENT = 0
SELF = 1

WIN = 1
LOSS = -1
UNKNOWN = 0


@dataclass
class SimulationState:
    """Two-party position. Index 0 is the opponent, index 1 is us."""
    cash: List[int]
    influence: List[int]
    roles: List[Set[str]]

    def can_block(self, player: int, action_name: str) -> bool:
        return any(role in self.roles[player] for role in blockers_for(action_name))

    def outcome(self) -> int:
        if self.influence[OPPONENT] <= 0:
            return WIN
        if self.influence[SELF] <= 0:
            return LOSS
        return UNKNOWN


def _who(turn: int) -> str:
    return "we" if turn == SELF else "they"


def steal(sim: SimulationState, turn: int, log: logging.Logger) -> None:
    other = 1 - turn
    taken = min(2, sim.cash[other])
    sim.cash[turn] += taken
    sim.cash[other] -= taken
    log.debug(f"{_who(turn)} steal")


def assassinate(sim: SimulationState, turn: int, log: logging.Logger) -> None:
    sim.cash[turn] -= cost_of("assassinate")
    sim.influence[1 - turn] -= 1
    log.debug(f"{_who(turn)} assassinate")


def coup(sim: SimulationState, turn: int, log: logging.Logger) -> None:
    sim.cash[turn] -= cost_of("coup")
    sim.influence[1 - turn] -= 1
    log.debug(f"{_who(turn)} coup")


def tax(sim: SimulationState, turn: int, log: logging.Logger) -> None:
    sim.cash[turn] += 3
    log.debug(f"{_who(turn)} tax")


def income(sim: SimulationState, turn: int, log: logging.Logger) -> None:
    sim.cash[turn] += 1
    log.debug(f"{_who(turn)} income")


def play_best_move(sim: SimulationState, turn: int, log: logging.Logger) -> None:
    other = 1 - turn
    roles = sim.roles[turn]
    if ASSASSIN in roles and not sim.can_block(other, "assassinate") and sim.cash[turn] >= cost_of("assassinate"):
        assassinate(sim, turn, log)
    elif sim.cash[turn] >= cost_of("coup"):
        coup(sim, turn, log)
    elif CAPTAIN in roles and not sim.can_block(other, "steal") and sim.cash[other] > 0:
        # TODO: prefer tax over a one-coin steal when we also hold the duke
        steal(sim, turn, log)
    elif DUKE in roles:
        tax(sim, turn, log)
    else:
        income(sim, turn, log)


PENDING_MOVES = {
    "steal": steal,
    "assassinate": assassinate,
    "tax": tax,
}


def simulate(
    snapshot: GameStateSnapshot,
    opponent_idx: int,
    opponent_roles: Iterable[str],
    search_horizon: int,
    bluffed_role: Optional[str] = None,
    log: Optional[logging.Logger] = None,
) -> int:
    """
    Play out us against one opponent.

    Args:
        snapshot: Current game state
        opponent_idx: Index of the last live opponent
        opponent_roles: Roles the opponent has claimed
        search_horizon: Maximum number of plies
        bluffed_role: Role we are considering claiming falsely; when set in the
            action-response phase, the opponent's pending action is assumed blocked

    Returns:
        1 if we win, -1 if the opponent wins, 0 if nobody is eliminated in time
    """
    log = log or logger
    opponent = snapshot.players[opponent_idx]
    me = snapshot.me
    our_roles = set(me.live_roles())
    if bluffed_role:
        our_roles.add(bluffed_role)

    sim = SimulationState(
        cash=[opponent.cash, me.cash],
        influence=[opponent.influence_count, me.influence_count],
        roles=[set(opponent_roles), our_roles],
    )
    log.debug(f"simulating with {sorted(sim.roles[OPPONENT])} and {sorted(sim.roles[SELF])}")
    log.debug(f"their cash: {sim.cash[OPPONENT]}, our cash: {sim.cash[SELF]}")

    result = sim.outcome()
    if result != UNKNOWN:
        return result

    # Odd plies are ours, even plies are theirs
    ply = 0
    turn = snapshot.state
    if turn.name == Phase.ACTION_RESPONSE:
        # The opponent is acting; unless we are blocking it, the action goes through
        if not bluffed_role:
            move = PENDING_MOVES.get(turn.action or "")
            if move is not None:
                move(sim, OPPONENT, log)
            else:
                log.debug(f"unexpected initial action: {turn.action}")
            result = sim.outcome()
            if result != UNKNOWN:
                return result
    elif turn.name == Phase.BLOCK_RESPONSE:
        # The opponent is blocking our action, so the next move is theirs
        ply = 1

    while ply < search_horizon:
        ply += 1
        play_best_move(sim, ply % 2, log)
        log.debug(f"their cash: {sim.cash[OPPONENT]}, our cash: {sim.cash[SELF]}")
        result = sim.outcome()
        if result != UNKNOWN:
            log.debug("we win simulation" if result == WIN else "they win simulation")
            return result

    log.debug("search horizon exceeded while simulating endgame")
    return UNKNOWN
