#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
from app.data.models.cart_merge import CartMergeModel
from app.data.models.customer import CustomerModel
from app.data.models.order import OrderModel
from app.data.models.order_item import OrderItemModel
from app.data.models.payment import PaymentModel
from app.data.models.payment_proof import PaymentProofModel

__all__ = [
    "CartModel",
    "CartItemModel",
    "CartMergeModel",
    "CustomerModel",
    "OrderModel",
    "OrderItemModel",
    "PaymentModel",
    "PaymentProofModel",
]
