from .catalog import Supplier, Product
from .inventory import StockBatch, StockWriteOff
from .invoices import Invoice, InvoiceLine
from .documents import DocumentSequence

__all__ = [
    'Supplier', 'Product',
    'StockBatch', 'StockWriteOff',
    'Invoice', 'InvoiceLine',
    'DocumentSequence',
]
