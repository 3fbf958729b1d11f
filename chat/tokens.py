"""
Token trimming using tiktoken for OpenAI models.
"""

import tiktoken


def get_encoding(model: str):
    """Encoding for a model, falling back to cl100k_base for unknown names."""
    try:
        return tiktoken.encoding_for_model(model)
    except KeyError:
        # Fallback to cl100k_base encoding if model not found
        return tiktoken.get_encoding("cl100k_base")


def truncate_to_tokens(text: str, max_tokens: int, model: str = "gpt-3.5-turbo") -> str:
    """
    Keep the start of `text`, cut to at most `max_tokens` tokens.

    Byte-level BPE tokens cover at least one UTF-8 byte, so text of at most
    max_tokens bytes is returned without loading an encoding.
    """
    if len(text.encode("utf-8")) <= max_tokens:
        return text

    encoding = get_encoding(model)
    tokens = encoding.encode(text)
    if len(tokens) <= max_tokens:
        return text
    # a cut inside a multi-byte character decodes to U+FFFD
    return encoding.decode(tokens[:max_tokens]).rstrip("�")
