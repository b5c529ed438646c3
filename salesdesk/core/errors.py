# salesdesk/core/errors.py
#
# Failures raised by the sale transaction. Routers turn every SaleError
# into a 400 response carrying str(exc) as the detail.


class SaleError(Exception):
    """Base class for expected, user-facing sale failures."""


class InvalidSaleInput(SaleError):
    pass


class ProductNotFound(SaleError):
    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


class VariantNotFound(SaleError):
    def __init__(self, product_name: str, variant_id):
        self.product_name = product_name
        self.variant_id = variant_id
        super().__init__(f"Variant {variant_id} not found for product {product_name}")


class InsufficientStock(SaleError):
    def __init__(self, product_name: str, variant_title: str, requested: int, available: int):
        self.product_name = product_name
        self.variant_title = variant_title
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {product_name} ({variant_title}): "
            f"requested {requested} units, {available} available"
        )
