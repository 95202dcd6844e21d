from .function import FiniteElementFunction

__all__ = ["FiniteElementFunction"]
