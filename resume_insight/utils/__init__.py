from . import file_handler, log_config

__all__ = ["file_handler", "log_config"]
