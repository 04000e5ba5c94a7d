#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from checkout.data.models.user import UserModel
from checkout.data.models.promo_code import PromoCodeModel
from checkout.data.models.promo_code_usage import PromoCodeUsageModel
from checkout.data.models.cart import CartModel
from checkout.data.models.cart_item import CartItemModel
from checkout.data.models.order import OrderModel
from checkout.data.models.order_item import OrderItemModel
from checkout.data.models.wallet import WalletModel
from checkout.data.models.wallet_transaction import WalletTransactionModel

__all__ = [
    "UserModel",
    "PromoCodeModel",
    "PromoCodeUsageModel",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
    "WalletModel",
    "WalletTransactionModel",
]
