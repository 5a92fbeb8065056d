from .base import LineItemDAO, Scanner
from .factory import DaoFactory, build_dao_factory
from .memory_dao import InMemoryLineItemDAO

__all__ = ["DaoFactory", "InMemoryLineItemDAO", "LineItemDAO", "Scanner", "build_dao_factory"]
