from .clients import ClientModel
from .inventory import ProductModel, StockMovementModel
from .orders import OrderModel, OrderItemModel

__all__ = [
    'ClientModel',
    'ProductModel', 'StockMovementModel',
    'OrderModel', 'OrderItemModel',
]
