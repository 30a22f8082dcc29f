"""
A2A Executor for the Coup AI.
"""
import logging
from typing import Dict, Optional

from a2a.server.agent_execution import AgentExecutor, RequestContext
from a2a.server.events import EventQueue
from a2a.server.tasks import TaskUpdater
from a2a.types import (
    TaskState,
    UnsupportedOperationError,
    InvalidRequestError,
)
from a2a.utils.errors import ServerError
from a2a.utils import new_agent_text_message, new_task

from .models import AgentOptions
from .remote import RemoteSeat

logger = logging.getLogger(__name__)


FINISHED = frozenset({
    TaskState.completed,
    TaskState.canceled,
    TaskState.failed,
    TaskState.rejected,
})


class CoupExecutor(AgentExecutor):
    """
    Routes requests to one seat per A2A context, so every game
    gets its own AI player with its own round state.
    """

    def __init__(self, options: Optional[AgentOptions] = None):
        self.options = options or AgentOptions()
        self.seats: Dict[str, RemoteSeat] = {}

    def seat_for(self, context_id: str) -> RemoteSeat:
        seat = self.seats.get(context_id)
        if seat is None:
            logger.info(f"🪑 New seat for context {context_id}")
            seat = self.seats[context_id] = RemoteSeat(self.options)
        return seat

    async def execute(self, context: RequestContext, event_queue: EventQueue) -> None:
        if not context.message:
            raise ServerError(error=InvalidRequestError(message="Missing message"))

        task = context.current_task
        if task is None:
            task = new_task(context.message)
            await event_queue.enqueue_event(task)
        elif task.status.state in FINISHED:
            raise ServerError(error=InvalidRequestError(message=f"Task {task.id} already processed"))

        seat = self.seat_for(task.context_id)
        updater = TaskUpdater(event_queue, task.id, task.context_id)
        await updater.start_work()

        try:
            await seat.run(context.message, updater)
        except Exception as e:
            logger.error(f"Seat {task.context_id} failed: {e}", exc_info=True)
            await updater.failed(new_agent_text_message(
                f"Agent error: {e}",
                context_id=task.context_id,
                task_id=task.id,
            ))
            return
        await updater.complete()

    async def cancel(self, context: RequestContext, event_queue: EventQueue) -> None:
        """Decisions are made within a single request; nothing to cancel"""
        raise ServerError(error=UnsupportedOperationError())
