from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


SLOT_GROUPS = ("standard", "fixed", "early-morning", "express", "midnight")
HOLIDAY_MODES = ("FULL_BLOCK", "STANDARD_ONLY", "CUSTOM")
VENDOR_STATUSES = ("PENDING", "APPROVED", "SUSPENDED", "REJECTED")


class City(Base):
    __tablename__ = 'cities'

    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    is_active = Column(Boolean, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    state = Column(Text)
    base_delivery_charge = Column(Float, nullable=False, server_default=text('0'))
    free_delivery_above = Column(Float)

    delivery_configs = relationship('CityDeliveryConfig', back_populates='city')
    holidays = relationship('DeliveryHoliday', back_populates='city')
    vendors = relationship('Vendor', back_populates='city')


class DeliverySlot(Base):
    __tablename__ = 'delivery_slots'

    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    slot_group = Column(Enum(*SLOT_GROUPS, name='slot_group'), nullable=False)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    base_charge = Column(Float, nullable=False, server_default=text('0'))
    is_active = Column(Boolean, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)

    city_configs = relationship('CityDeliveryConfig', back_populates='slot')


class CityDeliveryConfig(Base):
    __tablename__ = 'city_delivery_configs'
    __table_args__ = (
        UniqueConstraint('city_id', 'slot_id'),
    )

    city_id = Column(ForeignKey('cities.id', ondelete='CASCADE'), nullable=False)
    slot_id = Column(ForeignKey('delivery_slots.id', ondelete='CASCADE'), nullable=False)
    is_available = Column(Boolean, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    charge_override = Column(Float)

    city = relationship('City', back_populates='delivery_configs')
    slot = relationship('DeliverySlot', back_populates='city_configs')


class DeliveryHoliday(Base):
    __tablename__ = 'delivery_holidays'

    date = Column(Date, nullable=False, index=True)
    reason = Column(Text, nullable=False)
    mode = Column(Enum(*HOLIDAY_MODES, name='holiday_mode'), nullable=False, server_default=text("'FULL_BLOCK'"))
    id = Column(Integer, primary_key=True)
    # NULL city = applies to every city
    city_id = Column(ForeignKey('cities.id', ondelete='CASCADE'))
    customer_message = Column(Text)
    # JSON list of {"slug", "blocked", "priceOverride"}
    slot_overrides = Column(Text)
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))

    city = relationship('City', back_populates='holidays')


class DeliverySurcharge(Base):
    __tablename__ = 'delivery_surcharges'

    name = Column(Text, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    amount = Column(Float, nullable=False)
    applies_to = Column(Text, nullable=False, server_default=text("'all'"))
    is_active = Column(Boolean, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    city_id = Column(ForeignKey('cities.id', ondelete='CASCADE'))


class Category(Base):
    __tablename__ = 'categories'

    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    id = Column(Integer, primary_key=True)

    products = relationship('Product', back_populates='category')


class Product(Base):
    __tablename__ = 'products'

    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    base_price = Column(Float, nullable=False)
    is_active = Column(Boolean, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    category_id = Column(ForeignKey('categories.id', ondelete='SET NULL'))
    images = Column(Text, nullable=False, server_default=text("'[]'"))
    tags = Column(Text, nullable=False, server_default=text("'[]'"))
    weight = Column(Text)
    avg_rating = Column(Float, nullable=False, server_default=text('0'))
    total_reviews = Column(Integer, nullable=False, server_default=text('0'))

    category = relationship('Category', back_populates='products')
    vendor_products = relationship('VendorProduct', back_populates='product')


class Vendor(Base):
    __tablename__ = 'vendors'

    business_name = Column(Text, nullable=False)
    city_id = Column(ForeignKey('cities.id', ondelete='CASCADE'), nullable=False)
    status = Column(Enum(*VENDOR_STATUSES, name='vendor_status'), nullable=False, server_default=text("'PENDING'"))
    id = Column(Integer, primary_key=True)
    vacation_start = Column(Date)
    vacation_end = Column(Date)

    city = relationship('City', back_populates='vendors')
    vendor_products = relationship('VendorProduct', back_populates='vendor')
    working_hours = relationship('VendorWorkingHours', back_populates='vendor')
    slots = relationship('VendorSlot', back_populates='vendor')
    capacity = relationship('VendorCapacity', back_populates='vendor')


class VendorProduct(Base):
    __tablename__ = 'vendor_products'
    __table_args__ = (
        UniqueConstraint('vendor_id', 'product_id'),
    )

    vendor_id = Column(ForeignKey('vendors.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(ForeignKey('products.id', ondelete='CASCADE'), nullable=False)
    is_available = Column(Boolean, nullable=False, server_default=text('1'))
    # Minutes between order acceptance and dispatch readiness
    preparation_time = Column(Integer, nullable=False, server_default=text('120'))
    is_same_day_eligible = Column(Boolean, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)

    vendor = relationship('Vendor', back_populates='vendor_products')
    product = relationship('Product', back_populates='vendor_products')


class VendorWorkingHours(Base):
    __tablename__ = 'vendor_working_hours'
    __table_args__ = (
        UniqueConstraint('vendor_id', 'day_of_week'),
    )

    vendor_id = Column(ForeignKey('vendors.id', ondelete='CASCADE'), nullable=False)
    # 0 = Sunday .. 6 = Saturday
    day_of_week = Column(Integer, nullable=False)
    open_time = Column(Text, nullable=False, server_default=text("'09:00'"))
    close_time = Column(Text, nullable=False, server_default=text("'21:00'"))
    is_closed = Column(Boolean, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)

    vendor = relationship('Vendor', back_populates='working_hours')


class VendorSlot(Base):
    __tablename__ = 'vendor_slots'
    __table_args__ = (
        UniqueConstraint('vendor_id', 'slot_id'),
    )

    vendor_id = Column(ForeignKey('vendors.id', ondelete='CASCADE'), nullable=False)
    slot_id = Column(ForeignKey('delivery_slots.id', ondelete='CASCADE'), nullable=False)
    is_enabled = Column(Boolean, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    custom_charge = Column(Float)

    vendor = relationship('Vendor', back_populates='slots')


class VendorCapacity(Base):
    __tablename__ = 'vendor_capacity'
    __table_args__ = (
        UniqueConstraint('vendor_id', 'date', 'slot_id'),
    )

    vendor_id = Column(ForeignKey('vendors.id', ondelete='CASCADE'), nullable=False)
    slot_id = Column(ForeignKey('delivery_slots.id', ondelete='CASCADE'), nullable=False)
    date = Column(Date, nullable=False)
    booked_orders = Column(Integer, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)
    # NULL falls back to DeliveryConfig.default_max_orders
    max_orders = Column(Integer)

    vendor = relationship('Vendor', back_populates='capacity')


class CitySlotCutoff(Base):
    __tablename__ = 'city_slot_cutoff'
    __table_args__ = (
        UniqueConstraint('city_id', 'slot_id'),
    )

    city_id = Column(ForeignKey('cities.id', ondelete='CASCADE'), nullable=False)
    slot_id = Column(ForeignKey('delivery_slots.id', ondelete='CASCADE'), nullable=False)
    slot_name = Column(Text, nullable=False)
    slot_slug = Column(Text, nullable=False)
    slot_start = Column(Text, nullable=False)
    slot_end = Column(Text, nullable=False)
    cutoff_hours = Column(Integer, nullable=False)
    base_charge = Column(Float, nullable=False)
    min_vendors = Column(Integer, nullable=False, server_default=text('0'))
    is_available = Column(Boolean, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)
    updated_at = Column(DateTime)
