# commerce_erp/data_access/payments_repository.py

from typing import List
from decimal import Decimal
from commerce_erp.data_access.base_repository import BaseRepository
from commerce_erp.data_access.database_manager import DatabaseManager
from commerce_erp.business_logic.entities.payment_entity import PaymentEntity
from commerce_erp.business_logic.entities.supplier_payment_entity import SupplierPaymentEntity
from commerce_erp.constants import SupplierPaymentStatus

class PaymentsRepository(BaseRepository[PaymentEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager, model_type=PaymentEntity, table_name="payments")

    def get_by_invoice_id(self, invoice_id: int) -> List[PaymentEntity]:
        return self.find_by_criteria({"invoice_id": invoice_id}, order_by="payment_date, id")


class SupplierPaymentsRepository(BaseRepository[SupplierPaymentEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager, model_type=SupplierPaymentEntity, table_name="supplier_payments")

    def get_by_grn_id(self, grn_id: int) -> List[SupplierPaymentEntity]:
        return self.find_by_criteria({"grn_id": grn_id}, order_by="payment_date, id")

    def sum_counted_for_grn(self, grn_id: int) -> Decimal:
        """Total of the approved and paid payments of a GRN; drafts don't count."""
        query = (f"SELECT COALESCE(SUM(amount), 0) AS total FROM {self._table_name} "
                 f"WHERE grn_id = ? AND status IN (?, ?)")
        row = self.db_manager.fetch_one(query, (grn_id, SupplierPaymentStatus.APPROVED.value, SupplierPaymentStatus.PAID.value))
        return Decimal(str(row['total'])) if row else Decimal("0")
