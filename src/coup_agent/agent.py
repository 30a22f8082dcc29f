"""
Coup AI player - reacts to state changes pushed by the game engine.

The engine calls `on_state_change` with every new snapshot and
`on_history_event` with every history line. After a short "thinking" delay
the player works out its move for the current phase and submits it through
the proxy returned when it joined the game.
"""
import asyncio
import logging
import random
from typing import Any, Dict, Optional, Union

from rich.console import Console

from .beliefs import RoundContext
from .models import AgentOptions, Command, GameStateSnapshot, Phase
from .policy import TurnPolicy

logger = logging.getLogger(__name__)
console = Console()

RESPONSE_PHASES = {Phase.ACTION_RESPONSE, Phase.FINAL_ACTION_RESPONSE}


class CoupAIPlayer:
    """
    Rule-based Coup player with bluffing and end-game look-ahead.
    Each instance owns its round state and its random number generator.
    """

    ai = True
    player_id = "ai"

    def __init__(self, options: Optional[AgentOptions] = None):
        self.options = options or AgentOptions()
        self.name = self.options.name
        self.rng = random.Random(self.options.random_seed)

        self.log = logger.getChild(f"{self.name.replace(' ', '_')}.{id(self):x}")
        if self.options.debug:
            self.log.setLevel(logging.DEBUG)

        self.game_proxy: Any = None
        self.state: Optional[GameStateSnapshot] = None
        self.context: Optional[RoundContext] = None
        self._pending: Optional[asyncio.Task] = None
        self._need_reset = True

    # =========================================================================
    # ENGINE CALLBACKS
    # =========================================================================

    def on_state_change(self, snapshot: Union[GameStateSnapshot, Dict[str, Any]]) -> None:
        # The previous snapshot is stale even if this one turns out to be malformed
        self._cancel_pending()
        self.state = None
        if not isinstance(snapshot, GameStateSnapshot):
            snapshot = GameStateSnapshot.model_validate(snapshot)
        self.state = snapshot

        if snapshot.state.name == Phase.WAITING_FOR_PLAYERS:
            self._need_reset = True
            return

        # Reset when the game actually starts: the first state after waiting for players
        if self._need_reset:
            self.reset()
            self._need_reset = False

        spread = self.options.move_delay_spread
        low = max(0, self.options.move_delay - spread)
        high = max(0, self.options.move_delay + spread)
        delay_ms = self.rng.randint(low, high)
        self._pending = asyncio.get_running_loop().create_task(self._think(delay_ms / 1000.0))

    def on_history_event(self, message: str) -> None:
        if self.context is not None:
            self.context.beliefs.observe_history(message)

    def on_chat_message(self, *args: Any, **kwargs: Any) -> None:
        pass

    async def settle(self) -> None:
        """Wait until the pending decision has been made or superseded."""
        task = self._pending
        if task is not None:
            await asyncio.wait([task])

    # =========================================================================
    # ROUND STATE
    # =========================================================================

    def reset(self) -> None:
        self.context = RoundContext.start(self.rng, self.options.chance_to_bluff, log=self.log)
        if self.state is not None:
            me = self.state.me
            console.print(
                f"[bold cyan]🎴 {self.name} (Player {self.state.player_idx}): "
                f"{len(self.state.players)} players, {me.cash} coins[/bold cyan]"
            )
        self.log.debug(f"new round, bluffing={self.context.bluff_choice}")

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _think(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self._pending = None
        try:
            self.decide()
        except Exception as e:
            logger.error(f"{self.name} failed to decide on state {self.state.state_id}: {e}", exc_info=True)

    # =========================================================================
    # DISPATCH
    # =========================================================================

    def decide(self) -> Optional[Command]:
        """Act on the current snapshot, if this phase needs anything from us."""
        state = self.state
        if state is None or self.context is None:
            return None
        turn = state.state
        me = state.player_idx
        # Must happen before dispatch: history events about challenges refer to it
        self.context.beliefs.update_last_claim(state)

        policy = TurnPolicy(state, self.context, self.options, self.rng, log=self.log)
        command: Optional[Command] = None

        if turn.name == Phase.START_OF_TURN and turn.player_idx == me:
            command = policy.play_our_turn()
        elif turn.name in RESPONSE_PHASES and turn.player_idx != me:
            command = policy.respond_to_action()
        elif turn.name == Phase.BLOCK_RESPONSE and turn.target != me:
            command = policy.respond_to_block()
        elif turn.name == Phase.REVEAL_INFLUENCE and turn.player_to_reveal == me:
            policy.update_called_bluffs()
            command = policy.reveal()
        elif turn.name == Phase.EXCHANGE and turn.player_idx == me:
            command = policy.exchange()
        else:
            self.log.debug(f"nothing to do in {turn.phase_name}")

        if command is not None:
            self.command(command)
        return command

    def command(self, command: Command) -> None:
        payload = command.model_copy(update={"state_id": self.state.state_id}).to_payload()
        try:
            self.game_proxy.command(payload)
        except Exception as e:
            logger.error(f"Command {payload} rejected: {e}", exc_info=True)


def create_ai_player(game: Any, options: Optional[AgentOptions] = None) -> Optional[CoupAIPlayer]:
    """
    Create an AI player and join it to a game.

    Args:
        game: Engine object whose `player_joined(player)` returns a command proxy
        options: Agent configuration

    Returns:
        The joined player, or None if the game refused it
    """
    player = CoupAIPlayer(options)
    try:
        player.game_proxy = game.player_joined(player)
    except Exception as e:
        logger.error(f"Failed to join game as {player.name}: {e}", exc_info=True)
        return None
    return player
