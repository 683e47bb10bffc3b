"""Product ledger management — commands and handler."""

from protean import handle
from protean.fields import Boolean, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.domain import logger, storefront
from storefront.shared.errors import NotFound


@storefront.command(part_of="Product")
class RegisterProduct:
    name = String(required=True, max_length=255)
    description = Text()
    category = String(max_length=100)
    price = Float(required=True, min_value=0.0)
    stock = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)


@storefront.command(part_of="Product")
class UpdateProductPrice:
    product_id = Identifier(required=True)
    price = Float(required=True, min_value=0.0)


@storefront.command(part_of="Product")
class RestockProduct:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="Product")
class ActivateProduct:
    product_id = Identifier(required=True)


@storefront.command(part_of="Product")
class DeactivateProduct:
    product_id = Identifier(required=True)


@storefront.command(part_of="Product")
class RemoveProduct:
    """Delete a product from the ledger. Carts still holding it will fail validation."""

    product_id = Identifier(required=True)


def _load(ledger, product_id) -> Product:
    product = ledger.find(product_id)
    if product is None:
        raise NotFound(f"Product with ID {product_id} not found")
    return product


@storefront.command_handler(part_of=Product)
class ManageProductHandler:
    @handle(RegisterProduct)
    def register_product(self, command):
        product = Product.register(
            name=command.name,
            description=command.description,
            category=command.category,
            price=command.price,
            stock=command.stock if command.stock is not None else 0,
            is_active=command.is_active if command.is_active is not None else True,
        )
        current_domain.repository_for(Product).add(product)
        logger.info("product_registered", product_id=str(product.id), stock=product.stock)
        return str(product.id)

    @handle(UpdateProductPrice)
    def update_product_price(self, command):
        ledger = current_domain.repository_for(Product)
        product = _load(ledger, command.product_id)
        product.change_price(command.price)
        ledger.add(product)

    @handle(RestockProduct)
    def restock_product(self, command):
        ledger = current_domain.repository_for(Product)
        _load(ledger, command.product_id)
        new_stock = ledger.increment_stock(command.product_id, command.quantity)
        logger.info("product_restocked", product_id=str(command.product_id), new_stock=new_stock)
        return new_stock

    @handle(ActivateProduct)
    def activate_product(self, command):
        ledger = current_domain.repository_for(Product)
        product = _load(ledger, command.product_id)
        product.activate()
        ledger.add(product)

    @handle(DeactivateProduct)
    def deactivate_product(self, command):
        ledger = current_domain.repository_for(Product)
        product = _load(ledger, command.product_id)
        product.deactivate()
        ledger.add(product)

    @handle(RemoveProduct)
    def remove_product(self, command):
        ledger = current_domain.repository_for(Product)
        product = _load(ledger, command.product_id)
        ledger._dao.delete(product)
        logger.info("product_removed", product_id=str(command.product_id))
