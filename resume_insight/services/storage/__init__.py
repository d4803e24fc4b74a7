from . import analysis_store, base, chat_history_store, profile_store

__all__ = ["analysis_store", "base", "chat_history_store", "profile_store"]
