class StockLedgerError(Exception):
    """Base class for stock ledger failures."""

class NotFoundError(StockLedgerError):
    """Unknown product, batch or store id."""

class ValidationError(StockLedgerError):
    """Malformed query parameters or request payload."""

class PersistenceUnavailable(StockLedgerError):
    """The database is unreachable or its schema is not provisioned yet.

    Read paths that raise this are expected to degrade to empty results
    rather than fail the request.
    """
