class LedgerError(ValueError):
    """Base for business-rule failures raised by the core. Maps to an HTTP status."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnbalancedEntry(LedgerError):
    status_code = 422


class EmptyEntry(LedgerError):
    status_code = 422


class InvalidBatchSize(LedgerError):
    status_code = 422


class InvalidDateRange(LedgerError):
    status_code = 422


class InvalidTransition(LedgerError):
    status_code = 409


class AccountNotConfigured(LedgerError):
    status_code = 404

    def __init__(self, role: str):
        super().__init__(f"No active account carries system role {role}; configure it in the chart of accounts")
        self.role = role


class AccountNotFound(LedgerError):
    status_code = 404

    def __init__(self, account_code: str):
        super().__init__(f"Account {account_code} not found or inactive")
        self.account_code = account_code


class BomNotFound(LedgerError):
    status_code = 404


class ProductionOrderNotFound(LedgerError):
    status_code = 404


class LedgerIntegrityError(LedgerError):
    status_code = 500


class InvalidJournalLine(LedgerError):
    status_code = 422


class InvalidBom(LedgerError):
    status_code = 422


class ItemNotFound(LedgerError):
    status_code = 404
