from sqlalchemy import (Column, Integer, String, ForeignKey, Date, Numeric,
                        Float, Text)
from sqlalchemy.orm import relationship
from pos_sync.core.database import Base
from pos_sync.core.mixins import TimestampMixin, ShopScopedMixin


class Order(Base, TimestampMixin, ShopScopedMixin):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    status = Column(String, nullable=False, default="pending", index=True)

    # Fulfillment
    fulfillment_method = Column(String, nullable=True)  # dine_in, takeaway, delivery
    fulfillment_date = Column(Date, nullable=True)
    fulfillment_time = Column(String(8), nullable=True)  # HH:MM

    # Amounts
    shipping_cost = Column(Numeric(10, 2), nullable=True, default=0)
    discount_total = Column(Numeric(10, 2), nullable=True, default=0)

    # Customer details captured at checkout
    customer_email = Column(String, nullable=True)
    customer_first_name = Column(String, nullable=True)
    customer_last_name = Column(String, nullable=True)
    customer_phone = Column(String, nullable=True)
    customer_address = Column(Text, nullable=True)
    customer_postal_code = Column(String(20), nullable=True)
    customer_city = Column(String, nullable=True)

    # Set once the order has been pushed to the POS
    remote_order_ref = Column(Integer, nullable=True, index=True)

    lines = relationship(
        "OrderLine", back_populates="order", order_by="OrderLine.id",
        cascade="all, delete-orphan",
    )
    payments = relationship(
        "OrderPayment", back_populates="order", order_by="OrderPayment.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Order(id={self.id}, remote_order_ref={self.remote_order_ref})>"


class OrderLine(Base, TimestampMixin):
    __tablename__ = "order_lines"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Numeric(10, 2), nullable=False, default=0)  # unit price
    tax_rate = Column(Float, nullable=True)

    order = relationship("Order", back_populates="lines")
    product = relationship("Product")
    subproducts = relationship(
        "OrderLineSubproduct", back_populates="line",
        order_by="OrderLineSubproduct.id", cascade="all, delete-orphan",
    )


class OrderLineSubproduct(Base):
    __tablename__ = "order_line_subproducts"

    id = Column(Integer, primary_key=True, index=True)
    order_line_id = Column(Integer, ForeignKey("order_lines.id"), nullable=False,
                           index=True)
    subproduct_id = Column(Integer, ForeignKey("subproducts.id"), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    tax_rate = Column(Float, nullable=True)

    line = relationship("OrderLine", back_populates="subproducts")
    subproduct = relationship("Subproduct")


class OrderPayment(Base, TimestampMixin):
    __tablename__ = "order_payments"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    provider = Column(String, nullable=False)  # e.g. "stripe", "cash"
    amount = Column(Numeric(10, 2), nullable=False, default=0)

    order = relationship("Order", back_populates="payments")
