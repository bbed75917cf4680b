# src/sales_domain/domain/repositories/sale_repository.py
"""Sale ledger repository interface."""
from abc import ABC, abstractmethod

from src.sales_domain.domain.entities.sale import Sale, SaleItem, SaleStatus


class ISaleRepository(ABC):

    @abstractmethod
    def insert_sale(self, sale: Sale) -> Sale:
        """Appends a sale header and returns it with its id."""
        pass

    @abstractmethod
    def insert_sale_item(self, item: SaleItem) -> SaleItem:
        """Appends a sale line and returns it with its id."""
        pass

    @abstractmethod
    def delete_sale_items(self, sale_id: int) -> None:
        """Removes the lines of a sale. Only used to compensate a sale that was not fully written."""
        pass

    @abstractmethod
    def mark_sale_failed(self, sale_id: int) -> None:
        """Flags a sale as failed. Only used to compensate a sale that was not fully written."""
        pass

    @abstractmethod
    def list_sales(self, status: SaleStatus = SaleStatus.COMPLETED) -> list[Sale]:
        """Retrieves all sales with the given status, oldest first, with their items."""
        pass

    @abstractmethod
    def list_recent_sales(self, limit: int = 5) -> list[Sale]:
        """Retrieves the latest completed sales, newest first, with their items."""
        pass

    @abstractmethod
    def ping(self) -> bool:
        """Checks that the store answers."""
        pass
