from .auth import User, UserStore, UserPermissionOverride, SessionToken
from .stores import Store
from .catalog import Supplier, Product, Stock, StockMovement
from .inventory import InventorySession, InventoryItem
from .sales import Sale, SaleItem
from .returns import Return, ReturnItem
from .finance import Expense
from .audit import AuditLog
from .gamification import UserGamification, UserBadge, PointsEvent

__all__ = [
    'User', 'UserStore', 'UserPermissionOverride', 'SessionToken',
    'Store',
    'Supplier', 'Product', 'Stock', 'StockMovement',
    'InventorySession', 'InventoryItem',
    'Sale', 'SaleItem',
    'Return', 'ReturnItem',
    'Expense',
    'AuditLog',
    'UserGamification', 'UserBadge', 'PointsEvent',
]
