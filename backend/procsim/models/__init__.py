from .auth import User
from .training import TrainingTask, StudentProgress, EvaluationRecord
from .catalog import Supplier, Product
from .inventory import InventoryRecord
from .orders import Order, OrderLine, OrderSequence
from .finance import FinancialRecord
from .market import MarketData

__all__ = [
    'User',
    'TrainingTask', 'StudentProgress', 'EvaluationRecord',
    'Supplier', 'Product',
    'InventoryRecord',
    'Order', 'OrderLine', 'OrderSequence',
    'FinancialRecord',
    'MarketData',
]
