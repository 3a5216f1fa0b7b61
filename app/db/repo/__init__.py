from app.db.repo.account_packages_repo import AccountPackagesRepo
from app.db.repo.accounts_repo import AccountsRepo
from app.db.repo.mpesa_payments_repo import MpesaPaymentsRepo
from app.db.repo.package_history_repo import PackageHistoryRepo
from app.db.repo.payment_history_repo import PaymentHistoryRepo
from app.db.repo.processed_transactions_repo import ProcessedTransactionsRepo

__all__ = [
    "AccountPackagesRepo",
    "AccountsRepo",
    "MpesaPaymentsRepo",
    "PackageHistoryRepo",
    "PaymentHistoryRepo",
    "ProcessedTransactionsRepo",
]
