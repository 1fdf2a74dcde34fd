# Storage module: catalog / order / expense file loaders
from .loader import LoaderError, load_catalog, load_expenses, load_orders, order_from_document, parse_datetime

__all__ = ['LoaderError', 'load_catalog', 'load_expenses', 'load_orders', 'order_from_document', 'parse_datetime']
