"""
A2A Server for the Coup AI.
"""
import argparse
import logging
from typing import Optional

import uvicorn
from dotenv import load_dotenv
from rich.console import Console

from a2a.server.apps import A2AStarletteApplication
from a2a.server.request_handlers import DefaultRequestHandler
from a2a.server.tasks import InMemoryTaskStore
from a2a.types import (
    AgentCapabilities,
    AgentCard,
    AgentSkill,
)

from .executor import CoupExecutor
from .models import AgentOptions

console = Console()


DESCRIPTION = "Rule-based Coup agent with bluffing and end-game look-ahead"


def build_agent_card(agent_id: str, url: str) -> AgentCard:
    """Agent card advertising a single Coup-playing skill"""
    return AgentCard(
        name=agent_id,
        version="1.0.0",
        description=DESCRIPTION,
        url=url,
        protocol_version="0.3.0",
        skills=[AgentSkill(
            id="coup-player",
            name="Coup Player",
            description=DESCRIPTION,
            tags=["gaming", "bluffing", "coup"],
        )],
        capabilities=AgentCapabilities(streaming=False),
        defaultInputModes=["text"],
        defaultOutputModes=["text"],
    )


def create_app(agent_id: str, host: str, port: int, public_url: Optional[str] = None,
               options: Optional[AgentOptions] = None):
    """
    Create A2A Starlette application.

    Args:
        agent_id: Name advertised on the agent card
        host: Host to bind the server
        port: Port to bind the server
        public_url: Public URL for the agent card (optional, defaults to http://host:port)
        options: AI player configuration shared by every seat

    Returns:
        Starlette application instance
    """
    card = build_agent_card(agent_id, public_url or f"http://{host}:{port}")
    handler = DefaultRequestHandler(
        agent_executor=CoupExecutor(options),
        task_store=InMemoryTaskStore(),
    )
    return A2AStarletteApplication(agent_card=card, http_handler=handler).build()


def main():
    """Main entry point for the Coup AI server."""
    load_dotenv()

    parser = argparse.ArgumentParser(description="Coup AI Agent (A2A)")
    parser.add_argument("--agent-id", type=str, default="coup-ai", help="Agent ID")
    parser.add_argument("--host", type=str, default="0.0.0.0", help="Host to bind")
    parser.add_argument("--port", type=int, default=8200, help="Port to bind")
    parser.add_argument("--public-url", type=str, default=None, help="Public URL for agent card")
    parser.add_argument("--log-level", type=str, default="INFO", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    options = AgentOptions.from_env()
    app = create_app(args.agent_id, args.host, args.port, args.public_url, options)

    card_url = args.public_url or f"http://{args.host}:{args.port}"
    console.print(f"[bold green]🎮 Starting Coup AI '{args.agent_id}' on {args.host}:{args.port}[/bold green]")
    console.print(f"📋 Agent Card: {card_url}/.well-known/agent-card.json")
    console.print(
        f"🔧 bluff={options.chance_to_bluff} challenge={options.chance_to_challenge} "
        f"horizon={options.search_horizon}"
    )

    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level="warning",
    )


if __name__ == "__main__":
    main()
