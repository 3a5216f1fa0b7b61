from app.economy.errors import ConflictError, InternalError, NotFoundError, ValidationError


class AccountNotFoundError(NotFoundError):
    code = "E_ACCOUNT_NOT_FOUND"
    message = "User not found"


class DuplicateTransactionError(ConflictError):
    code = "E_DUPLICATE_TRANSACTION"
    message = "Transaction already processed"


class InvalidAmountError(ValidationError):
    code = "E_INVALID_AMOUNT"
    message = "Amount must be a positive whole number"


class LedgerConflictError(InternalError):
    code = "E_LEDGER_CONFLICT"
    message = "Wallet is busy, please retry"
