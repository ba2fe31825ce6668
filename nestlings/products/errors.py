from __future__ import annotations


class ProductNotFoundError(Exception):
    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class ProductImportError(Exception):
    """A source page could not be turned into a valid product."""
