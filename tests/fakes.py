from types import SimpleNamespace


class FakeOpenAI:
    """Stands in for openai.OpenAI: records requests, returns canned replies."""

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.calls = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self.create))

    def create(self, model, messages):
        self.calls.append({"model": model, "messages": [dict(m) for m in messages]})
        reply = self.replies.pop(0) if self.replies else "ok"
        if isinstance(reply, Exception):
            raise reply
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])
