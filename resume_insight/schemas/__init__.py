from . import base, chat, extraction, resume

__all__ = ["base", "chat", "extraction", "resume"]
