from .inventory import Product, Category, Subcategory
from .sales import Sale, Return
from .debts import DebtCustomer, Debt, DebtPayment
from .auth import User, SessionToken

__all__ = [
    'Product', 'Category', 'Subcategory',
    'Sale', 'Return',
    'DebtCustomer', 'Debt', 'DebtPayment',
    'User', 'SessionToken',
]
