"""
Database models for the Retail Transactions Dashboard
"""
from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship
import enum
from typing import List

from retail_dashboard.db.session import Base


class TransactionStatus(str, enum.Enum):
    """Enum for transaction lifecycle status"""
    COMPLETED = "Completed"
    PENDING = "Pending"
    CANCELLED = "Cancelled"
    RETURNED = "Returned"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


_STATUS_LIST = ", ".join(f"'{value}'" for value in TransactionStatus.values())


class Transaction(Base):
    """Retail transaction database model"""
    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("final_amount >= 0", name="ck_transactions_final_amount"),
        CheckConstraint("quantity >= 1", name="ck_transactions_quantity"),
        CheckConstraint(f"status IN ({_STATUS_LIST})", name="ck_transactions_status"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_id = Column(String(36), nullable=False, unique=True, index=True)
    date = Column(DateTime, nullable=False, index=True)

    # Customer
    customer_name = Column(String(100), nullable=False, index=True)
    phone = Column(String(20), nullable=False)
    age = Column(Integer, nullable=True, index=True)
    gender = Column(String(20), nullable=True, index=True)

    # Commerce
    product_name = Column(String(150), nullable=False)
    product_category = Column(String(50), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=1)
    price_per_unit = Column(Float, nullable=False)
    final_amount = Column(Float, nullable=False, index=True)
    payment_method = Column(String(30), nullable=False, index=True)
    delivery_type = Column(String(30), nullable=True, index=True)
    region = Column(String(50), nullable=False, index=True)
    status = Column(String(20), nullable=False, index=True, default=TransactionStatus.PENDING.value)

    # Relationships
    tags = relationship(
        "TransactionTag",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionTag.tag",
    )

    @property
    def tag_names(self) -> List[str]:
        return [t.tag for t in self.tags]

    def __repr__(self):
        return f"<Transaction {self.transaction_id}, status={self.status}>"


class TransactionTag(Base):
    """Tag attached to a transaction; a transaction holds each tag at most once"""
    __tablename__ = "transaction_tags"
    __table_args__ = (
        UniqueConstraint("transaction_pk", "tag", name="uq_transaction_tags_transaction_tag"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_pk = Column(Integer, ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False, index=True)
    tag = Column(String(50), nullable=False, index=True)

    transaction = relationship("Transaction", back_populates="tags")

    def __repr__(self):
        return f"<TransactionTag {self.tag}>"
