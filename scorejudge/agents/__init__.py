from .base import TableAgent
from .random_agent import RandomTableAgent

__all__ = [
    "TableAgent",
    "RandomTableAgent",
]
