from . import chat_context, chat_service, clients, improver

__all__ = ["chat_context", "chat_service", "clients", "improver"]
