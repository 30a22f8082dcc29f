"""
Pydantic models for Coup game snapshots, agent commands and agent options.
"""
import os
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Phase(str, Enum):
    """Game phases reported by the rules engine"""
    WAITING_FOR_PLAYERS = "waiting-for-players"
    START_OF_TURN = "start-of-turn"
    ACTION_RESPONSE = "action-response"
    FINAL_ACTION_RESPONSE = "final-action-response"
    BLOCK_RESPONSE = "block-response"
    REVEAL_INFLUENCE = "reveal-influence"
    EXCHANGE = "exchange"
    GAME_WON = "game-won"


class CommandType(str, Enum):
    """Commands the agent can send back to the engine"""
    ALLOW = "allow"
    CHALLENGE = "challenge"
    BLOCK = "block"
    PLAY_ACTION = "play-action"
    REVEAL = "reveal"
    EXCHANGE = "exchange"


class WireModel(BaseModel):
    """Engine payloads use camelCase keys"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Influence(WireModel):
    """One influence card"""
    role: str
    revealed: bool = False


class PlayerState(WireModel):
    """Public (and, for ourselves, private) information about a player"""
    name: Optional[str] = None
    cash: int = 0
    influence: List[Influence] = Field(default_factory=list)
    influence_count: int = 0

    def live_roles(self) -> List[str]:
        """Roles of the unrevealed cards, in hand order"""
        return [card.role for card in self.influence if not card.revealed]


class TurnState(WireModel):
    """The phase sub-object of a snapshot"""
    # Phases this agent does not know are kept as plain strings
    name: Union[Phase, str] = Field(union_mode="left_to_right")
    player_idx: Optional[int] = None
    target: Optional[int] = None
    action: Optional[str] = None
    blocking_role: Optional[str] = None
    exchange_options: List[str] = Field(default_factory=list)
    player_to_reveal: Optional[int] = None
    reason: Optional[str] = None

    @property
    def phase_name(self) -> str:
        return self.name.value if isinstance(self.name, Phase) else self.name


class GameStateSnapshot(WireModel):
    """Complete state as seen by one player"""
    state_id: Optional[int] = None
    player_idx: int
    num_players: Optional[int] = None
    players: List[PlayerState]
    roles: List[str]
    state: TurnState

    @property
    def player_count(self) -> int:
        return self.num_players if self.num_players is not None else len(self.players)

    @property
    def me(self) -> PlayerState:
        return self.players[self.player_idx]

    def our_influence(self) -> List[str]:
        return self.me.live_roles()

    def players_by_strength(self) -> List[int]:
        """Live opponents, most influence first, then most cash"""
        opponents = [
            idx for idx, player in enumerate(self.players)
            if idx != self.player_idx and player.influence_count > 0
        ]
        return sorted(
            opponents,
            key=lambda idx: (-self.players[idx].influence_count, -self.players[idx].cash),
        )

    def is_end_game(self) -> bool:
        """Exactly one opponent is still alive"""
        return len(self.players_by_strength()) == 1


class Command(WireModel):
    """Command submitted to the engine"""
    command: CommandType
    action: Optional[str] = None
    target: Optional[int] = None
    blocking_role: Optional[str] = None
    role: Optional[str] = None
    roles: Optional[List[str]] = None
    state_id: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class AgentOptions(BaseModel):
    """Construction-time configuration for one AI player"""
    name: str = "Coup AI"
    move_delay: int = Field(default=0, ge=0)         # How long the AI "thinks" before playing (ms)
    move_delay_spread: int = Field(default=0, ge=0)  # Jitter applied to move_delay (ms)
    search_horizon: int = Field(default=7, ge=0)     # Plies searched in the end-game
    chance_to_bluff: float = Field(default=0.5, ge=0.0, le=1.0)
    chance_to_challenge: float = Field(default=0.1, ge=0.0, le=1.0)  # Outside the end-game
    random_seed: Optional[int] = None
    debug: bool = False
    # Record called bluffs only after a successful challenge (the classic AI records on every reveal)
    strict_called_bluffs: bool = False

    @classmethod
    def from_env(cls, prefix: str = "COUP_AGENT_") -> "AgentOptions":
        """
        Build options from environment variables.

        Args:
            prefix: Variable prefix, e.g. COUP_AGENT_CHANCE_TO_BLUFF=0.3

        Returns:
            Validated options; unset variables keep their defaults
        """
        values: Dict[str, Any] = {}
        for field_name in cls.model_fields:
            raw = os.getenv(f"{prefix}{field_name.upper()}")
            if raw is not None and raw != "":
                values[field_name] = raw
        return cls.model_validate(values)
