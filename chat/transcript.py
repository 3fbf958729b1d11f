"""
Markdown transcripts and the title-request prompt.

Each getter shows exactly how the final document is assembled from
sections delimited by "## <name>" headers.
"""

from chat.client import SYSTEM, Turn

# =============================================================================
# Section names
# =============================================================================
PROMPT_SECTION = "prompt"
RESPONSE_SECTION = "response"
SYSTEM_SECTION = "system"
CONVERSATION_SECTION = "chat conversation"


def section_divider(name: str) -> str:
    return f"\n\n## {name}\n\n"


def render_header(title: str, timestamp: str) -> str:
    return f"# {title}\n\n{timestamp}"


def render_conversation(history: list[Turn]) -> str:
    """Every non-system turn as "role:\\ncontent" blocks."""
    return "".join(
        f"{turn.role}:\n{turn.content}\n\n" for turn in history if turn.role != SYSTEM
    )


# =============================================================================
# Transcript Generators
# =============================================================================

def render_ask_transcript(title: str, timestamp: str, prompt: str, response: str, system_prompt: str) -> str:
    """
    Transcript for a one-shot question.

    Sections: prompt, response, system.
    """
    components = [
        render_header(title, timestamp),
        section_divider(PROMPT_SECTION),
        prompt,
        section_divider(RESPONSE_SECTION),
        response,
        section_divider(SYSTEM_SECTION),
        system_prompt,
    ]
    return "".join(components)


def render_chat_transcript(title: str, timestamp: str, history: list[Turn], system_prompt: str) -> str:
    """
    Transcript for an interactive chat.

    Sections: chat conversation, system.
    """
    components = [
        render_header(title, timestamp),
        section_divider(CONVERSATION_SECTION),
        render_conversation(history),
        section_divider(SYSTEM_SECTION),
        system_prompt,
    ]
    return "".join(components)


def build_title_request(chat_system_prompt: str, conversation: str) -> str:
    """User message sent to the title persona."""
    components = [
        section_divider(SYSTEM_SECTION),
        chat_system_prompt,
        section_divider(CONVERSATION_SECTION),
        conversation,
    ]
    return "".join(components)
