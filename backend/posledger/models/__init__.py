from .auth import User, SessionToken
from .catalog import Category, Product
from .parties import Customer, Supplier, DebtPayment
from .invoices import Invoice, InvoiceItem, InvoiceSequence
from .settings import StoreSettings

__all__ = [
    'User', 'SessionToken',
    'Category', 'Product',
    'Customer', 'Supplier', 'DebtPayment',
    'Invoice', 'InvoiceItem', 'InvoiceSequence',
    'StoreSettings',
]
