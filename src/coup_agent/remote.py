"""
Remote seat: plays one Coup AI over A2A messages.

The remote engine sends JSON text messages; the seat feeds them to the AI
player and replies with the commands the player issued.
"""
import json
import logging
from typing import Any, Dict, List, Optional

from a2a.server.tasks import TaskUpdater
from a2a.types import Message, Part, TextPart
from a2a.utils import get_message_text
from pydantic import ValidationError

from .agent import CoupAIPlayer, create_ai_player
from .models import AgentOptions

logger = logging.getLogger(__name__)


class RemoteSeat:
    """
    The "game" an AI player joins when the engine is remote.
    Commands issued by the player are buffered until the reply is sent.
    """

    def __init__(self, options: Optional[AgentOptions] = None):
        self.options = options or AgentOptions()
        self.outbox: List[Dict[str, Any]] = []
        self.player: Optional[CoupAIPlayer] = create_ai_player(self, self.options)

    def player_joined(self, player: CoupAIPlayer) -> "RemoteSeat":
        logger.info(f"🃏 {player.name} took a seat")
        return self

    def command(self, payload: Dict[str, Any]) -> None:
        self.outbox.append(payload)

    def drain(self) -> List[Dict[str, Any]]:
        commands, self.outbox = self.outbox, []
        return commands

    async def run(self, message: Message, updater: TaskUpdater) -> None:
        """
        Process incoming A2A message and respond.

        Args:
            message: A2A Message with JSON-encoded game message
            updater: TaskUpdater for sending response
        """
        input_text = get_message_text(message)

        try:
            game_message = json.loads(input_text)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse message: {e}")
            await self._reply(updater, {"status": "error", "message": f"Invalid JSON: {e}"})
            return

        response = await self.handle(game_message)
        await self._reply(updater, response)

    async def handle(self, game_message: Dict[str, Any]) -> Dict[str, Any]:
        msg_type = game_message.get("type")
        logger.debug(f"Seat received: {msg_type}")

        handlers = {
            "state": self._handle_state,
            "history": self._handle_history,
        }
        handler = handlers.get(msg_type)
        if handler is None or self.player is None:
            return {"status": "acknowledged"}
        return await handler(game_message)

    async def _handle_state(self, game_message: Dict[str, Any]) -> Dict[str, Any]:
        try:
            self.player.on_state_change(game_message.get("state") or {})
        except ValidationError as e:
            logger.error(f"Invalid snapshot: {e}")
            return {"status": "error", "message": f"Invalid state: {e}"}
        await self.player.settle()
        return {"status": "ok", "commands": self.drain()}

    async def _handle_history(self, game_message: Dict[str, Any]) -> Dict[str, Any]:
        self.player.on_history_event(str(game_message.get("message", "")))
        return {"status": "acknowledged"}

    async def _reply(self, updater: TaskUpdater, response: Dict[str, Any]) -> None:
        await updater.add_artifact([Part(root=TextPart(text=json.dumps(response)))])
