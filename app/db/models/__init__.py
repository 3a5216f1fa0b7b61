from app.db.models.account_packages import AccountPackage
from app.db.models.accounts import Account
from app.db.models.mpesa_payments import MpesaPayment
from app.db.models.package_history import PackageHistoryEntry
from app.db.models.payment_history import PaymentHistoryEntry
from app.db.models.processed_transactions import ProcessedTransaction

__all__ = [
    "Account",
    "AccountPackage",
    "MpesaPayment",
    "PackageHistoryEntry",
    "PaymentHistoryEntry",
    "ProcessedTransaction",
]
