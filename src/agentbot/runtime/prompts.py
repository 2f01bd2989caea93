"""
Prompt rendering for the agent.

Example:
    from agentbot.runtime.prompts import render_judge_prompt

    prompt = render_judge_prompt(
        transcript="Previous conversation context: ...",
        username="agent-bot",
        display_name="Assistant",
    )
"""

from __future__ import annotations


JUDGE_TEMPLATE = """You are a chat bot assistant. Based on this conversation context, should you respond to the latest message?

Context:
{transcript}

Your bot username is "{username}" and display name is "{display_name}".

Respond with ONLY "YES" if you should respond (if the message is:
- A direct question to anyone
- Asking for help or information
- Continuing a conversation you're already part of
- Requesting an action or task

Respond with ONLY "NO" if you should not respond (if the message is:
- Casual conversation between others
- Off-topic chatter
- Simple acknowledgments like "ok", "thanks", "lol"
- Private conversation between specific people

Answer:"""


SYSTEM_TEMPLATE = """You are {display_name} (@{username}), an assistant taking part in a team chat.

## Environment

Messages arrive as a transcript of the thread: each line is `Speaker: text`,
and the last line is the message you are replying to. Your reply is posted
into the same thread as plain Markdown.

## Guidelines

- Answer the latest message; use earlier lines only as context.
- Be concise. Chat is not a document.
- Use your tools when the question is about tasks, projects or current
  information. Say so plainly if a tool fails.
{custom_section}"""


def render_judge_prompt(transcript: str, username: str, display_name: str) -> str:
    """Render the YES/NO participation prompt for the judge model."""
    return JUDGE_TEMPLATE.format(
        transcript=transcript,
        username=username,
        display_name=display_name,
    )


def render_system_prompt(
    username: str,
    display_name: str,
    custom_section: str = "",
) -> str:
    """
    Render the system prompt for the reply model.

    Args:
        username: Agent handle on the chat platform
        display_name: Agent display name
        custom_section: Extra instructions appended at the end
    """
    section = f"\n## Instructions\n\n{custom_section.strip()}\n" if custom_section.strip() else ""
    return SYSTEM_TEMPLATE.format(
        username=username,
        display_name=display_name,
        custom_section=section,
    )
