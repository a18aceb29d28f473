from .catalog import Category, Product
from .inventory import StockEntry, JournalEntry
from .auth import User, ActiveSession

__all__ = [
    'Category', 'Product',
    'StockEntry', 'JournalEntry',
    'User', 'ActiveSession',
]
