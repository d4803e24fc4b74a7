from . import chat, deps, events, resumes, upload

__all__ = ["chat", "deps", "events", "resumes", "upload"]
