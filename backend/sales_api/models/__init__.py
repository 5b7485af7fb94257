from sales_api.models.sales import Sale, SaleItem

__all__ = [
    "Sale",
    "SaleItem",
]
