from .tenancy import Shop
from .auth import User, SessionToken
from .inventory import Supplier, Item, Purchase, StockMovement
from .sales import Sale, SaleItem
from .customers import Customer, CreditLedgerEntry, CreditPayment
from .accounting import GeneralLedgerEntry
from .shifts import ShiftRegister
from .documents import ReceiptSequence

__all__ = [
    'Shop',
    'User', 'SessionToken',
    'Supplier', 'Item', 'Purchase', 'StockMovement',
    'Sale', 'SaleItem',
    'Customer', 'CreditLedgerEntry', 'CreditPayment',
    'GeneralLedgerEntry',
    'ShiftRegister',
    'ReceiptSequence',
]
