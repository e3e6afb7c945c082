from .inventory import Supplier, Product, ProductImage
from .customers import Customer
from .sales import Sale

__all__ = [
    'Supplier', 'Product', 'ProductImage',
    'Customer',
    'Sale',
]
