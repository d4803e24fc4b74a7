from . import item

__all__ = ["item"]
