from storefront.models.user import User
from storefront.models.shipping_structure import ShippingStructure
from storefront.models.product import Product
from storefront.models.cart import Cart, CartItem
from storefront.models.order import Order
from storefront.models.order_item import OrderItem
from storefront.models.order_event import OrderStatusEvent
from storefront.models.order_counter import OrderCounter
from storefront.models.review import Review
from storefront.models.return_request import ReturnRequest
from storefront.models.catalog_item import CatalogItem
from storefront.models.verification_code import VerificationCode

# add ALL models here
