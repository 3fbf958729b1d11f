"""
Chat session package for the yoo assistant.

This package handles:
- Persona resolution and system prompts (personas.py)
- Chat-completion calls to OpenAI (client.py)
- One-shot and interactive sessions (session.py)
- Markdown transcripts and the log directory (transcript.py, save.py)
- Persona editing for the config command (persona_config.py)
"""
