from .tenancy import Company
from .auth import User
from .inventory import Product, Movement, Supplier

__all__ = [
    'Company',
    'User',
    'Product', 'Movement', 'Supplier',
]
