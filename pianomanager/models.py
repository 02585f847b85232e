from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .config import DEFAULT_PARTNER_ID
from .database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    auth_uid = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    email = Column(String(320), unique=True, index=True, nullable=True)
    role = Column(String(20), default="user", nullable=False)  # user, admin, partner, technician
    partner_id = Column(Integer, default=DEFAULT_PARTNER_ID, nullable=False)
    preferred_language = Column(String(5), nullable=True)
    notification_email_enabled = Column(Boolean, default=True, nullable=False)
    # Custom SMTP, password is Fernet-encrypted
    smtp_host = Column(String(255), nullable=True)
    smtp_port = Column(Integer, default=587)
    smtp_user = Column(String(320), nullable=True)
    smtp_password = Column(Text, nullable=True)
    smtp_secure = Column(Boolean, default=False)  # implicit TLS (port 465)
    smtp_from_name = Column(String(255), nullable=True)
    smtp_status = Column(String(20), nullable=True)  # live, failed, disabled
    smtp_last_test_at = Column(DateTime, nullable=True)
    smtp_error = Column(Text, nullable=True)
    last_signed_in = Column(DateTime, server_default=func.now())
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    clients = relationship("Client", back_populates="user")
    notifications = relationship("Notification", back_populates="user")


class Partner(Base):
    __tablename__ = "partners"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(320), nullable=False)
    partner_type = Column(String(20), default="distributor", nullable=False)  # manufacturer, distributor
    # Branding
    logo = Column(Text, nullable=True)
    primary_color = Column(String(7), default="#3b82f6")
    secondary_color = Column(String(7), default="#10b981")
    brand_name = Column(String(255), nullable=True)
    ecommerce_url = Column(String(500), nullable=True)
    # Legal / contact
    legal_name = Column(String(255), nullable=True)
    tax_id = Column(String(50), nullable=True)
    country = Column(String(2), default="ES")
    contact_name = Column(String(255), nullable=True)
    contact_email = Column(String(320), nullable=True, index=True)
    contact_phone = Column(String(50), nullable=True)
    status = Column(String(20), default="active", nullable=False)  # active, suspended, inactive
    # License pool
    total_licenses_purchased = Column(Integer, default=0, nullable=False)
    licenses_available = Column(Integer, default=0, nullable=False)
    licenses_assigned = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    activation_codes = relationship("ActivationCode", back_populates="partner")


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    partner_id = Column(Integer, default=DEFAULT_PARTNER_ID, nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(320), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    region = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)
    # particular, student, professional, music_school, conservatory, concert_hall
    client_type = Column(String(30), default="particular", nullable=False)
    notes = Column(Text, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    route_group = Column(String(50), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="clients")
    pianos = relationship("Piano", back_populates="client", cascade="all, delete-orphan")
    appointments = relationship("Appointment", back_populates="client", cascade="all, delete-orphan")


class Piano(Base):
    __tablename__ = "pianos"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    partner_id = Column(Integer, default=DEFAULT_PARTNER_ID, nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    brand = Column(String(100), nullable=False)
    model = Column(String(100), nullable=True)
    serial_number = Column(String(100), nullable=True)
    year = Column(Integer, nullable=True)
    category = Column(String(20), default="vertical", nullable=False)  # vertical, grand
    piano_type = Column(String(50), nullable=False)
    condition = Column(String(20), default="good", nullable=False)  # excellent, good, fair, poor, needs_repair
    location = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    photos = Column(JSON, nullable=True)
    tuning_interval_days = Column(Integer, default=180)
    regulation_interval_days = Column(Integer, default=730)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="pianos")
    services = relationship("ServiceRecord", back_populates="piano", cascade="all, delete-orphan")
    # Appointments outlive the piano; their piano_id is cleared
    appointments = relationship("Appointment", back_populates="piano")


class ServiceRecord(Base):
    """A service performed on a piano (tuning, repair, regulation...)"""

    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    partner_id = Column(Integer, default=DEFAULT_PARTNER_ID, nullable=False)
    piano_id = Column(Integer, ForeignKey("pianos.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    technician_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    service_type = Column(String(30), nullable=False)
    date = Column(DateTime, nullable=False, index=True)
    cost = Column(Float, nullable=True)
    duration = Column(Integer, nullable=True)  # minutes
    tasks = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)
    technician_notes = Column(Text, nullable=True)
    materials_used = Column(JSON, nullable=True)
    humidity = Column(Float, nullable=True)
    temperature = Column(Float, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    piano = relationship("Piano", back_populates="services")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    partner_id = Column(Integer, default=DEFAULT_PARTNER_ID, nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    piano_id = Column(Integer, ForeignKey("pianos.id", ondelete="SET NULL"), nullable=True)
    technician_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    date = Column(DateTime, nullable=False, index=True)
    duration = Column(Integer, default=60, nullable=False)  # minutes
    service_type = Column(String(50), nullable=True)
    status = Column(String(20), default="scheduled", nullable=False)  # scheduled, confirmed, completed, cancelled
    notes = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="appointments")
    piano = relationship("Piano", back_populates="appointments")


class InventoryItem(Base):
    __tablename__ = "inventory"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    partner_id = Column(Integer, default=DEFAULT_PARTNER_ID, nullable=False)
    name = Column(String(255), nullable=False)
    category = Column(String(30), nullable=False)
    description = Column(Text, nullable=True)
    quantity = Column(Float, default=0, nullable=False)
    unit = Column(String(20), default="unidad", nullable=False)
    min_stock = Column(Float, default=0, nullable=False)
    cost_per_unit = Column(Float, nullable=True)
    supplier = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(50), nullable=False)  # approval_pending, reminder, workflow, license
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=True)
    data = Column(JSON, nullable=True)
    workflow_execution_id = Column(
        Integer, ForeignKey("workflow_executions.id", ondelete="CASCADE"), nullable=True, index=True
    )
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="notifications")
