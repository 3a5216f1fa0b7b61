from app.economy.packages.service import SubscriptionService
from app.economy.wallet.service import WalletService

__all__ = [
    "SubscriptionService",
    "WalletService",
]
