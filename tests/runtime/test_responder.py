"""Tests for Responder."""

import asyncio

import pytest

from agentbot.core.types import StreamChunk, ThreadPost
from agentbot.runtime.responder import APOLOGY_REPLY, Responder
from agentbot.runtime.streaming import StreamingPublisher
from agentbot.testing import FakeLLM


@pytest.fixture
def make_responder(fake_chat, identity, threads, context_builder):
    def _make(llm=None, enable_streaming=True):
        return Responder(
            fake_chat,
            llm or FakeLLM(replies=["Here you go"]),
            identity,
            threads,
            context_builder,
            publisher=StreamingPublisher(fake_chat, tick_seconds=10),
            enable_streaming=enable_streaming,
        )

    return _make


def top_level(post_id: str, text: str) -> ThreadPost:
    return ThreadPost(id=post_id, user_id="u-alice", channel_id="c-1", thread_id="", text=text)


class TestReplyTarget:
    """Where the reply goes."""

    @pytest.mark.asyncio
    async def test_existing_thread(self, make_responder, make_message, fake_chat, threads):
        responder = make_responder(enable_streaming=False)

        thread_id = await responder.respond(
            make_message("follow-up", post_id="p-2", thread_id="root-1")
        )

        assert thread_id == "root-1"
        assert fake_chat.posted[0].thread_id == "root-1"
        assert "root-1" in threads

    @pytest.mark.asyncio
    async def test_mention_opens_thread_at_post(
        self, make_responder, make_message, fake_chat, threads
    ):
        fake_chat.add_post(top_level("p-1", "@agent-bot what's up"))
        responder = make_responder(enable_streaming=False)

        thread_id = await responder.respond(make_message("@agent-bot what's up", post_id="p-1"))

        assert thread_id == "p-1"
        assert fake_chat.posted[0].thread_id == "p-1"
        assert "p-1" in threads

    @pytest.mark.asyncio
    async def test_unfetchable_mention_replies_in_channel(
        self, make_responder, make_message, fake_chat, threads
    ):
        responder = make_responder(enable_streaming=False)

        thread_id = await responder.respond(make_message("@agent-bot hi", post_id="p-missing"))

        assert thread_id is None
        assert fake_chat.posted[0].thread_id is None
        assert len(threads) == 0

    @pytest.mark.asyncio
    async def test_dm_replies_at_channel_root(
        self, make_responder, make_message, fake_chat, threads
    ):
        responder = make_responder(enable_streaming=False)

        await responder.respond(make_message("hello", is_dm=True))

        assert fake_chat.posted[0].thread_id is None
        assert len(threads) == 0


class TestSingleShot:
    @pytest.mark.asyncio
    async def test_posts_llm_reply(self, make_responder, make_message, fake_chat):
        llm = FakeLLM(replies=["The answer is 42"])
        responder = make_responder(llm=llm, enable_streaming=False)

        await responder.respond(make_message("question?", thread_id="root-1"))

        assert fake_chat.posted[0].text == "The answer is 42"
        assert llm.prompts[0].endswith("\nalice: question?")

    @pytest.mark.asyncio
    async def test_llm_failure_posts_apology(
        self, make_responder, make_message, fake_chat, threads
    ):
        llm = FakeLLM(error=RuntimeError("overloaded"))
        responder = make_responder(llm=llm, enable_streaming=False)

        await responder.respond(make_message("question?", thread_id="root-1"))

        assert fake_chat.posted[0].text == APOLOGY_REPLY
        assert "root-1" in threads

    @pytest.mark.asyncio
    async def test_failed_post_does_not_track_thread(
        self, make_responder, make_message, fake_chat, threads
    ):
        fake_chat.fail_on["post"] = RuntimeError("down")
        responder = make_responder(enable_streaming=False)

        thread_id = await responder.respond(make_message("hi", thread_id="root-1"))

        assert thread_id is None
        assert "root-1" not in threads

    @pytest.mark.asyncio
    async def test_typing_failure_is_ignored(self, make_responder, make_message, fake_chat):
        fake_chat.fail_on["send_typing"] = RuntimeError("nope")
        responder = make_responder(enable_streaming=False)

        await responder.respond(make_message("hi", thread_id="root-1"))

        assert len(fake_chat.posted) == 1

    @pytest.mark.asyncio
    async def test_sends_typing_indicator(self, make_responder, make_message, fake_chat):
        await make_responder(enable_streaming=False).respond(
            make_message("hi", channel_id="c-9", thread_id="root-1")
        )

        assert fake_chat.typing == [("c-9", "root-1")]


class TestStreaming:
    @pytest.mark.asyncio
    async def test_streams_into_placeholder(
        self, make_responder, make_message, fake_chat, threads
    ):
        llm = FakeLLM(
            chunks=[
                StreamChunk(content="Hi "),
                StreamChunk(content="there"),
                StreamChunk(done=True),
            ]
        )

        await make_responder(llm=llm).respond(make_message("hey", thread_id="root-1"))

        assert len(fake_chat.posted) == 1
        placeholder_id = "post-1"
        assert fake_chat.text_of(placeholder_id) == "Hi there"
        assert "root-1" in threads
        assert llm.prompts == []

    @pytest.mark.asyncio
    async def test_degraded_stream_falls_back_to_single_shot(
        self, make_responder, make_message, fake_chat
    ):
        fake_chat.return_empty_post_id = True
        llm = FakeLLM(replies=["fallback reply"])

        await make_responder(llm=llm).respond(make_message("hey", thread_id="root-1"))

        assert [m.text for m in fake_chat.posted] == ["_Thinking..._", "fallback reply"]
        assert len(llm.prompts) == 1

    @pytest.mark.asyncio
    async def test_placeholder_failure_gives_up(
        self, make_responder, make_message, fake_chat, threads
    ):
        fake_chat.fail_on["post"] = RuntimeError("down")

        thread_id = await make_responder().respond(make_message("hey", thread_id="root-1"))

        assert thread_id is None
        assert "root-1" not in threads


class TestSerialization:
    @pytest.mark.asyncio
    async def test_same_thread_replies_do_not_interleave(
        self, fake_chat, identity, threads, context_builder, make_message
    ):
        order = []
        first_started = asyncio.Event()
        release_first = asyncio.Event()

        class SlowLLM(FakeLLM):
            async def prompt(self, text):
                n = len(order)
                order.append(f"start-{n}")
                if n == 0:
                    first_started.set()
                    await release_first.wait()
                order.append(f"end-{n}")
                return f"reply {n}"

        responder = Responder(
            fake_chat, SlowLLM(), identity, threads, context_builder,
            enable_streaming=False,
        )

        first = asyncio.create_task(responder.respond(make_message("a", post_id="p-1", thread_id="t")))
        await first_started.wait()
        second = asyncio.create_task(responder.respond(make_message("b", post_id="p-2", thread_id="t")))
        await asyncio.sleep(0.01)
        release_first.set()
        await asyncio.gather(first, second)

        assert order == ["start-0", "end-0", "start-1", "end-1"]
        assert [m.text for m in fake_chat.posted] == ["reply 0", "reply 1"]

    @pytest.mark.asyncio
    async def test_thread_locks_are_released(self, make_responder, make_message):
        responder = make_responder(enable_streaming=False)

        for n in range(50):
            await responder.respond(make_message("hello", post_id=f"dm-{n}", is_dm=True))

        assert responder._thread_locks == {}
        assert responder._lock_users == {}

    @pytest.mark.asyncio
    async def test_waiting_reply_keeps_lock_until_done(
        self, fake_chat, identity, threads, context_builder, make_message
    ):
        release = asyncio.Event()

        class GatedLLM(FakeLLM):
            async def prompt(self, text):
                await release.wait()
                return "ok"

        responder = Responder(
            fake_chat, GatedLLM(), identity, threads, context_builder,
            enable_streaming=False,
        )

        first = asyncio.create_task(responder.respond(make_message("a", post_id="p-1", thread_id="t")))
        second = asyncio.create_task(responder.respond(make_message("b", post_id="p-2", thread_id="t")))
        await asyncio.sleep(0.01)

        assert list(responder._thread_locks) == ["t"]
        assert responder._lock_users["t"] == 2

        release.set()
        await asyncio.gather(first, second)

        assert responder._thread_locks == {}
        assert len(fake_chat.posted) == 2
