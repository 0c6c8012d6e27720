"""
SQLAlchemy ORM models for the bookstore schema.
Covers users and their CRM profile, the book catalogue and orders.
"""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class User(Base):
    """Login credentials. The password column only ever holds a bcrypt hash."""

    __tablename__ = "user"

    id = Column(Integer, primary_key=True)
    login = Column(String, unique=True, nullable=False)
    password = Column(String, nullable=False)

    crm_cards = relationship("CrmCard", back_populates="user", passive_deletes=True)
    orders = relationship("Order", back_populates="user", passive_deletes=True)

    def __repr__(self):
        return f"<User(id={self.id}, login='{self.login}')>"


class UserType(Base):
    """Role assigned to a CRM card."""

    __tablename__ = "user_type"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    is_admin = Column(Boolean, nullable=False, default=False)
    is_manager = Column(Boolean, nullable=False, default=False)
    is_user = Column(Boolean, nullable=False, default=False)

    crm_cards = relationship("CrmCard", back_populates="user_type", passive_deletes=True)


class CrmCard(Base):
    """
    Customer profile card.

    Only the owning user and the user type are mandatory so that a card can be
    created at signup and filled in later.
    """

    __tablename__ = "crm_card"

    id = Column(Integer, primary_key=True)
    user_name = Column(String, nullable=True)
    user_surname = Column(String, nullable=True)
    user_patronymic = Column(String, nullable=True)
    title_card = Column(String, nullable=True)
    active = Column(Boolean, nullable=False, default=False)
    card_photo = Column(String, nullable=True)
    birthday = Column(DateTime, nullable=True)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="RESTRICT"), nullable=False)
    user_type_id = Column(Integer, ForeignKey("user_type.id", ondelete="RESTRICT"), nullable=False)

    user = relationship("User", back_populates="crm_cards")
    user_type = relationship("UserType", back_populates="crm_cards")
    emails = relationship("CrmEmail", back_populates="crm_card", passive_deletes=True)
    payment_cards = relationship("CrmPaymentCard", back_populates="crm_card", passive_deletes=True)
    addresses = relationship("CrmAddress", back_populates="crm_card", passive_deletes=True)


class CrmEmail(Base):
    __tablename__ = "crm_email"

    id = Column(Integer, primary_key=True)
    email = Column(String, nullable=False)
    is_main = Column(Boolean, nullable=False, default=False)
    crm_card_id = Column(Integer, ForeignKey("crm_card.id", ondelete="RESTRICT"), nullable=False)

    crm_card = relationship("CrmCard", back_populates="emails")


class CrmPaymentCard(Base):
    __tablename__ = "crm_payment"

    id = Column(Integer, primary_key=True)
    card_title = Column(String, nullable=False)
    card_number = Column(String, nullable=False)
    date_end = Column(DateTime, nullable=False)
    crm_card_id = Column(Integer, ForeignKey("crm_card.id", ondelete="RESTRICT"), nullable=False)

    crm_card = relationship("CrmCard", back_populates="payment_cards")


class CrmAddress(Base):
    __tablename__ = "crm_address"

    id = Column(Integer, primary_key=True)
    country = Column(String, nullable=False)
    city = Column(String, nullable=False)
    street = Column(String, nullable=False)
    house = Column(String, nullable=False)
    apartment = Column(String, nullable=False)
    crm_card_id = Column(Integer, ForeignKey("crm_card.id", ondelete="RESTRICT"), nullable=False)

    crm_card = relationship("CrmCard", back_populates="addresses")


class Author(Base):
    __tablename__ = "author"

    id = Column(Integer, primary_key=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    biography = Column(Text, nullable=True)

    books = relationship("Book", back_populates="author", passive_deletes=True)

    def __repr__(self):
        return f"<Author(id={self.id}, name='{self.first_name} {self.last_name}')>"


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)

    books = relationship("Book", back_populates="category", passive_deletes=True)


class Publisher(Base):
    __tablename__ = "publishers"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    address = Column(String, nullable=False)
    contact = Column(String, nullable=False)

    books = relationship("Book", back_populates="publisher", passive_deletes=True)


class Book(Base):
    """
    Catalogue entry.

    Author, category and publisher are optional; removing one of them
    leaves the book in place with the reference cleared.
    """

    __tablename__ = "book"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Float, nullable=False, index=True)
    published_at = Column(DateTime, nullable=False)
    stock = Column(Integer, nullable=False)
    author_id = Column(Integer, ForeignKey("author.id", ondelete="SET NULL"), nullable=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    publisher_id = Column(Integer, ForeignKey("publishers.id", ondelete="SET NULL"), nullable=True, index=True)

    author = relationship("Author", back_populates="books")
    category = relationship("Category", back_populates="books")
    publisher = relationship("Publisher", back_populates="books")
    order_items = relationship("OrderItem", back_populates="book", passive_deletes=True)

    def __repr__(self):
        return f"<Book(id={self.id}, title='{self.title}', price={self.price})>"


class OrderStatus(Base):
    __tablename__ = "order_status"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    is_done = Column(Boolean, nullable=False, default=False)
    is_awaiting_payment = Column(Boolean, nullable=False, default=False)
    is_paid = Column(Boolean, nullable=False, default=False)
    is_confirmed = Column(Boolean, nullable=False, default=False)
    is_performed = Column(Boolean, nullable=False, default=False)
    is_canceled = Column(Boolean, nullable=False, default=False)

    orders = relationship("Order", back_populates="order_status", passive_deletes=True)


class Order(Base):
    __tablename__ = "order"

    id = Column(Integer, primary_key=True)
    total_amount = Column(Float, nullable=False)
    order_status_id = Column(Integer, ForeignKey("order_status.id", ondelete="RESTRICT"), nullable=False)
    order_date = Column(DateTime, nullable=False)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="RESTRICT"), nullable=False)

    order_status = relationship("OrderStatus", back_populates="orders")
    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", passive_deletes=True)


class OrderItem(Base):
    __tablename__ = "order_item"

    id = Column(Integer, primary_key=True)
    quantity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)
    order_id = Column(Integer, ForeignKey("order.id", ondelete="RESTRICT"), nullable=False)
    book_id = Column(Integer, ForeignKey("book.id", ondelete="RESTRICT"), nullable=False)

    order = relationship("Order", back_populates="items")
    book = relationship("Book", back_populates="order_items")
