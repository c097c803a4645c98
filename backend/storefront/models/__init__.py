from .catalog import Product
from .auth import User, SessionToken
from .orders import Order, OrderLine, ORDER_STATUSES, PAYMENT_STATUSES
from .sales import SaleRecord, SaleRecordLine, SALE_SOURCES, SOURCE_ONLINE, SOURCE_SELLER_DIRECT
from .requests import ProductRequest, REQUEST_STATUSES, TERMINAL_REQUEST_STATUSES

__all__ = [
    'Product',
    'User', 'SessionToken',
    'Order', 'OrderLine', 'ORDER_STATUSES', 'PAYMENT_STATUSES',
    'SaleRecord', 'SaleRecordLine', 'SALE_SOURCES', 'SOURCE_ONLINE', 'SOURCE_SELLER_DIRECT',
    'ProductRequest', 'REQUEST_STATUSES', 'TERMINAL_REQUEST_STATUSES',
]
