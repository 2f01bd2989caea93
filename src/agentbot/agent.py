"""Agent - composes the link, decision engine, responder and sweeper."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine

from agentbot.adapters.anthropic import AnthropicProvider
from agentbot.config import BotSettings
from agentbot.core.protocols import LLMProvider
from agentbot.core.types import Decision, IncomingMessage
from agentbot.integrations.asana import AsanaClient, AsanaTools
from agentbot.platform.event import PlatformEvent
from agentbot.platform.link import MattermostLink
from agentbot.preprocessing.default import DefaultPreprocessor
from agentbot.runtime.context import ThreadContextBuilder
from agentbot.runtime.decision import ResponseDecisionEngine
from agentbot.runtime.health import HealthServer
from agentbot.runtime.prompts import render_system_prompt
from agentbot.runtime.responder import Responder
from agentbot.runtime.state import ActiveThreadSet, BotIdentity
from agentbot.runtime.streaming import StreamingPublisher
from agentbot.runtime.supervisor import ConnectionSupervisor
from agentbot.runtime.sweeper import CleanupSweeper
from agentbot.runtime.types import BotConfig

logger = logging.getLogger(__name__)


class Agent:
    """
    Composes the chat link, the decision policy and the reply path.

    Two ways to create:

    1. Full composition (tests, custom providers):
        agent = Agent(
            link=MattermostLink(...),
            identity=BotIdentity(user_id="...", username="agent-bot", display_name="Assistant"),
            llm=MyProvider(),
            judge=MyJudge(),
        )

    2. From settings (most users):
        agent = Agent.create(load_bot_settings())
        await agent.run()
    """

    def __init__(
        self,
        link: MattermostLink,
        identity: BotIdentity,
        llm: LLMProvider,
        judge: LLMProvider | None = None,
        config: BotConfig | None = None,
        preprocessor: DefaultPreprocessor | None = None,
        health_port: int | None = None,
        asana: AsanaClient | None = None,
    ):
        self.config = config or BotConfig()
        self.link = link
        self.identity = identity
        self.threads = ActiveThreadSet()
        self._preprocessor = preprocessor or DefaultPreprocessor()
        self._asana = asana

        chat = link.rest
        context_builder = ThreadContextBuilder(chat, identity)
        self.decision = ResponseDecisionEngine(
            identity, self.threads, context_builder, judge
        )
        self.responder = Responder(
            chat,
            llm,
            identity,
            self.threads,
            context_builder,
            publisher=StreamingPublisher(
                chat,
                tick_seconds=self.config.stream_tick_seconds,
                deadline_seconds=self.config.stream_deadline_seconds,
                placeholder_text=self.config.placeholder_text,
            ),
            enable_streaming=self.config.enable_streaming,
        )
        self.sweeper = CleanupSweeper(
            chat,
            self.threads,
            interval_seconds=self.config.sweep_interval_seconds,
            sample_size=self.config.sweep_sample_size,
        )
        self.supervisor = ConnectionSupervisor(
            link, reconnect_interval_seconds=self.config.reconnect_interval_seconds
        )
        self.supervisor.on_event = self.on_event

        self.health = (
            HealthServer(lambda: self.supervisor.is_healthy, port=health_port)
            if health_port is not None
            else None
        )

        self._tasks: set[asyncio.Task[Any]] = set()
        self._stopped = asyncio.Event()

    @classmethod
    def create(
        cls,
        settings: BotSettings,
        config: BotConfig | None = None,
        enable_health: bool = True,
    ) -> "Agent":
        """
        Create agent with the default Mattermost link and Anthropic providers.

        Asana tools are enabled only when settings carry an Asana key.
        """
        config = config or BotConfig()
        identity = BotIdentity(
            user_id=settings.bot_user_id,
            username=settings.bot_username,
            display_name=settings.bot_display_name,
        )
        link = MattermostLink(
            server_url=settings.server_url,
            access_token=settings.access_token,
            bot_user_id=settings.bot_user_id,
        )

        asana = AsanaClient(settings.asana_api_key) if settings.asana_api_key else None
        llm = AnthropicProvider(
            model=settings.anthropic_model,
            anthropic_api_key=settings.anthropic_api_key,
            max_tokens=settings.llm_max_tokens,
            system_prompt=render_system_prompt(
                username=identity.username,
                display_name=identity.display_name,
            ),
            tools=AsanaTools(asana) if asana else None,
            web_search_max_uses=settings.web_search_max_uses,
            max_tool_rounds=config.max_tool_rounds,
        )
        judge = AnthropicProvider(
            model=settings.decision_model,
            anthropic_api_key=settings.anthropic_api_key,
            max_tokens=settings.decision_max_tokens,
            enable_tools=False,
        )

        return cls(
            link=link,
            identity=identity,
            llm=llm,
            judge=judge,
            config=config,
            health_port=settings.port if enable_health else None,
            asana=asana,
        )

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def start(self) -> None:
        """
        Connect and start processing events.

        Raises:
            Whatever the first connection attempt raises
        """
        try:
            await self.supervisor.start()
        except Exception:
            await self._close_clients()
            raise
        if self.health:
            await self.health.start()
        logger.info(
            f"Agent {self.identity.mention} started "
            f"(streaming={'on' if self.config.enable_streaming else 'off'})"
        )

    async def stop(self) -> None:
        """Stop agent. In-flight replies are cancelled."""
        await self.supervisor.stop()

        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        if self.health:
            await self.health.stop()
        await self._close_clients()

        self._stopped.set()
        logger.info("Agent stopped")

    async def _close_clients(self) -> None:
        await self.link.aclose()
        if self._asana:
            await self._asana.aclose()

    async def run(self) -> None:
        """Run until interrupted."""
        await self.start()
        try:
            await self._stopped.wait()
        finally:
            if not self._stopped.is_set():
                await self.stop()

    async def on_event(self, event: PlatformEvent) -> None:
        """Route one platform event. Replies run as separate tasks."""
        message = self._preprocessor.process(event, self.identity.user_id)
        if message is None:
            return

        if self.sweeper.is_due():
            self._spawn(self.sweeper.maybe_sweep(), name="thread-sweep")

        self._spawn(self.handle_message(message), name=f"message-{message.post_id}")
        logger.debug(f"{self.in_flight} message tasks in flight")

    async def handle_message(self, message: IncomingMessage) -> Decision:
        """Decide, and reply if the decision says so."""
        decision = await self.decision.decide(message)
        if not decision:
            logger.debug(f"Not responding to {message.post_id}")
            return decision

        logger.info(f"Responding to {message.post_id}: {decision.reason.value}")
        await self.responder.respond(message)
        return decision

    def _spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> None:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Task {task.get_name()} failed: {error}", exc_info=error)
