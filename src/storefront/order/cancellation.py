"""Order cancellation. Cancelling hands the stock of every line back to the ledger."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.domain import logger, storefront
from storefront.order.order import Order
from storefront.shared.errors import Forbidden, InvalidRequest, NotFound


@storefront.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    user_id = Identifier()


def load_owned_order(order_id, user_id) -> Order:
    if not user_id:
        raise InvalidRequest("Orders are only available to authenticated users")

    try:
        order = current_domain.repository_for(Order).get(str(order_id))
    except ObjectNotFoundError:
        raise NotFound(f"Order with ID {order_id} not found")

    if not order.belongs_to(user_id):
        raise Forbidden("You can only access your own orders")
    return order


@storefront.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        order = load_owned_order(command.order_id, command.user_id)
        order.cancel()

        ledger = current_domain.repository_for(Product)
        restocked = []
        for item in order.items:
            if ledger.find(item.product_id) is None:
                logger.warning("restock_skipped", order_id=str(order.id), product_id=str(item.product_id))
                continue
            ledger.increment_stock(item.product_id, item.quantity)
            restocked.append(str(item.product_id))

        current_domain.repository_for(Order).add(order)

        logger.info("order_cancelled", order_id=str(order.id), restocked=restocked)
        return str(order.id)
