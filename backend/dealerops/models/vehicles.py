from __future__ import annotations

from ..extensions import db
from dealerops.time_utils import to_iso_date, to_utc_z, utcnow


Money = db.Numeric(12, 2, asdecimal=False)


class VehicleStatus:
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    SOLD = "Sold"
    ARB = "ARB"
    PENDING_ARBITRATION = "Pending Arbitration"
    WITHDREW = "Withdrew"
    COMPLETE = "Complete"

    ALL = (PENDING, IN_PROGRESS, SOLD, ARB, PENDING_ARBITRATION, WITHDREW, COMPLETE)
    # Statuses listed on the Sold page
    SOLD_SECTION = (SOLD, ARB, WITHDREW, PENDING_ARBITRATION)


class ArbType:
    SOLD = "Sold ARB"
    INVENTORY = "Inventory ARB"

    ALL = (SOLD, INVENTORY)


class ArbOutcome:
    PENDING = "Pending"
    DENIED = "Denied"
    PRICE_ADJUSTMENT = "Price Adjustment"
    BUYER_WITHDREW = "Buyer Withdrew"
    WITHDRAWN = "Withdrawn"

    ALL = (PENDING, DENIED, PRICE_ADJUSTMENT, BUYER_WITHDREW, WITHDRAWN)


MISSING_TITLE_STATUSES = ("Absent", "In Transit", "Available not Received")


class Vehicle(db.Model):
    """
    A car in the dealer's book, from purchase through sale.

    Lifecycle: created by import or manual entry (status Pending), moved by
    status patches, sales and ARB outcomes. Hard delete is admin-only.
    """
    __tablename__ = "vehicles"
    __table_args__ = (
        db.Index("ix_vehicles_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    vin = db.Column(db.String(17), nullable=True, unique=True, index=True)
    year = db.Column(db.Integer, nullable=False)
    make = db.Column(db.String(64), nullable=False, index=True)
    model = db.Column(db.String(64), nullable=False, index=True)
    trim = db.Column(db.String(128), nullable=True)
    exterior_color = db.Column(db.String(64), nullable=True)
    interior_color = db.Column(db.String(64), nullable=True)
    status = db.Column(db.String(32), nullable=False, default=VehicleStatus.PENDING, index=True)
    odometer = db.Column(db.Integer, nullable=True)

    title_status = db.Column(db.String(64), nullable=True, index=True)
    psi_status = db.Column(db.String(64), nullable=True)
    dealshield_arbitration_status = db.Column(db.String(128), nullable=True)

    # Money (dollars)
    bought_price = db.Column(Money, nullable=True)
    buy_fee = db.Column(Money, nullable=True)
    sale_invoice = db.Column(Money, nullable=True)
    other_charges = db.Column(Money, nullable=True)
    total_vehicle_cost = db.Column(Money, nullable=True)

    sale_date = db.Column(db.Date, nullable=True, index=True)
    lane = db.Column(db.String(32), nullable=True)
    run = db.Column(db.String(32), nullable=True)
    channel = db.Column(db.String(64), nullable=True)
    facilitating_location = db.Column(db.String(255), nullable=True)
    vehicle_location = db.Column(db.String(255), nullable=True)

    pickup_location_address1 = db.Column(db.String(255), nullable=True)
    pickup_location_city = db.Column(db.String(128), nullable=True)
    pickup_location_state = db.Column(db.String(64), nullable=True)
    pickup_location_zip = db.Column(db.String(16), nullable=True)
    pickup_location_phone = db.Column(db.String(32), nullable=True)

    seller_name = db.Column(db.String(255), nullable=True)
    buyer_dealership = db.Column(db.String(255), nullable=True)
    buyer_contact_name = db.Column(db.String(255), nullable=True)
    buyer_aa_id = db.Column(db.String(64), nullable=True)
    buyer_reference = db.Column(db.String(128), nullable=True)
    sale_invoice_status = db.Column(db.String(16), nullable=True)  # PAID, UNPAID

    created_by = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now(), onupdate=utcnow)

    expenses = db.relationship("VehicleExpense", back_populates="vehicle", cascade="all, delete-orphan", lazy="dynamic")
    arb_records = db.relationship("ArbRecord", back_populates="vehicle", cascade="all, delete-orphan", lazy="dynamic")

    @property
    def label(self) -> str:
        """YEAR MAKE MODEL (TRIM), as shown on lists."""
        text = f"{self.year} {self.make} {self.model}"
        if self.trim:
            text += f" ({self.trim})"
        return text

    @property
    def stock_number(self) -> str:
        return f"{self.id:08d}"

    def to_dict(self):
        return {
            "id": self.id,
            "vin": self.vin,
            "year": self.year,
            "make": self.make,
            "model": self.model,
            "trim": self.trim,
            "exterior_color": self.exterior_color,
            "interior_color": self.interior_color,
            "status": self.status,
            "odometer": self.odometer,
            "title_status": self.title_status,
            "psi_status": self.psi_status,
            "dealshield_arbitration_status": self.dealshield_arbitration_status,
            "bought_price": self.bought_price,
            "buy_fee": self.buy_fee,
            "sale_invoice": self.sale_invoice,
            "other_charges": self.other_charges,
            "total_vehicle_cost": self.total_vehicle_cost,
            "sale_date": to_iso_date(self.sale_date),
            "lane": self.lane,
            "run": self.run,
            "channel": self.channel,
            "facilitating_location": self.facilitating_location,
            "vehicle_location": self.vehicle_location,
            "pickup_location_address1": self.pickup_location_address1,
            "pickup_location_city": self.pickup_location_city,
            "pickup_location_state": self.pickup_location_state,
            "pickup_location_zip": self.pickup_location_zip,
            "pickup_location_phone": self.pickup_location_phone,
            "seller_name": self.seller_name,
            "buyer_dealership": self.buyer_dealership,
            "buyer_contact_name": self.buyer_contact_name,
            "buyer_aa_id": self.buyer_aa_id,
            "buyer_reference": self.buyer_reference,
            "sale_invoice_status": self.sale_invoice_status,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ArbRecord(db.Model):
    """
    One arbitration case against a vehicle.

    Created Pending by initiate; resolved exactly once to a terminal outcome.
    At most one Pending record per (vehicle, arb_type) is expected; resolution
    always targets the most recent one.
    """
    __tablename__ = "vehicle_arb_records"
    __table_args__ = (
        db.Index("ix_arb_vehicle_type_outcome", "vehicle_id", "arb_type", "outcome"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    vehicle_id = db.Column(db.Integer, db.ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    arb_type = db.Column(db.String(32), nullable=False)
    outcome = db.Column(db.String(32), nullable=False, default=ArbOutcome.PENDING)

    adjustment_amount = db.Column(Money, nullable=True)
    transport_type = db.Column(db.String(64), nullable=True)
    transport_location = db.Column(db.String(255), nullable=True)
    transport_date = db.Column(db.Date, nullable=True)
    transport_cost = db.Column(Money, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now(), onupdate=utcnow)

    vehicle = db.relationship("Vehicle", back_populates="arb_records")
    creator = db.relationship("Profile", foreign_keys=[created_by])

    def to_dict(self, include_vehicle: bool = False):
        data = {
            "id": self.id,
            "vehicle_id": self.vehicle_id,
            "arb_type": self.arb_type,
            "outcome": self.outcome,
            "adjustment_amount": self.adjustment_amount,
            "transport_type": self.transport_type,
            "transport_location": self.transport_location,
            "transport_date": to_iso_date(self.transport_date),
            "transport_cost": self.transport_cost,
            "notes": self.notes,
            "created_by": self.created_by,
            "creator": self.creator.to_summary() if self.creator else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_vehicle:
            data["vehicle"] = self.vehicle.to_dict() if self.vehicle else None
        return data


class VehicleExpense(db.Model):
    __tablename__ = "vehicle_expenses"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    vehicle_id = db.Column(db.Integer, db.ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    expense_description = db.Column(db.String(255), nullable=False)
    expense_date = db.Column(db.Date, nullable=False)
    cost = db.Column(Money, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now(), onupdate=utcnow)

    vehicle = db.relationship("Vehicle", back_populates="expenses")

    def to_dict(self):
        return {
            "id": self.id,
            "vehicle_id": self.vehicle_id,
            "expense_description": self.expense_description,
            "expense_date": to_iso_date(self.expense_date),
            "cost": self.cost,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class VehicleNote(db.Model):
    __tablename__ = "vehicle_notes"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    vehicle_id = db.Column(db.Integer, db.ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    note_text = db.Column(db.Text, nullable=False)

    created_by = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now(), onupdate=utcnow)

    author = db.relationship("Profile", foreign_keys=[created_by])

    def to_dict(self):
        return {
            "id": self.id,
            "vehicle_id": self.vehicle_id,
            "note_text": self.note_text,
            "created_by": self.created_by,
            "author": self.author.to_summary() if self.author else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class VehicleImage(db.Model):
    """Uploaded photo or PDF; the bytes live in the vehicle-images bucket."""
    __tablename__ = "vehicle_images"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    vehicle_id = db.Column(db.Integer, db.ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    file_name = db.Column(db.String(255), nullable=False)
    file_url = db.Column(db.String(1024), nullable=False)
    storage_path = db.Column(db.String(512), nullable=False)
    file_size = db.Column(db.Integer, nullable=False)
    file_type = db.Column(db.String(128), nullable=False)

    uploaded_by = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "vehicle_id": self.vehicle_id,
            "file_name": self.file_name,
            "file_url": self.file_url,
            "file_size": self.file_size,
            "file_type": self.file_type,
            "uploaded_by": self.uploaded_by,
            "created_at": to_utc_z(self.created_at),
        }


class VehicleDispatch(db.Model):
    """Transport assignment for moving a vehicle."""
    __tablename__ = "vehicle_dispatch"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    vehicle_id = db.Column(db.Integer, db.ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    location = db.Column(db.String(255), nullable=False)
    transport_company = db.Column(db.String(255), nullable=False)
    transport_cost = db.Column(Money, nullable=True)
    address = db.Column(db.String(255), nullable=True)
    state = db.Column(db.String(64), nullable=True)
    zip = db.Column(db.String(16), nullable=True)
    ac_assign_carrier = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    file_url = db.Column(db.String(1024), nullable=True)
    file_name = db.Column(db.String(255), nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now(), onupdate=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "vehicle_id": self.vehicle_id,
            "location": self.location,
            "transport_company": self.transport_company,
            "transport_cost": self.transport_cost,
            "address": self.address,
            "state": self.state,
            "zip": self.zip,
            "ac_assign_carrier": self.ac_assign_carrier,
            "notes": self.notes,
            "file_url": self.file_url,
            "file_name": self.file_name,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class VehicleAssessment(db.Model):
    """Condition report taken when a vehicle is checked in."""
    __tablename__ = "vehicle_assessments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    vehicle_id = db.Column(db.Integer, db.ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    assessment_date = db.Column(db.Date, nullable=False)
    assessment_time = db.Column(db.String(8), nullable=False)
    conducted_name = db.Column(db.String(255), nullable=False)
    miles_in = db.Column(db.Integer, nullable=True)
    color = db.Column(db.String(64), nullable=True)
    cr_number = db.Column(db.String(64), nullable=True)
    damage_markers = db.Column(db.JSON, nullable=False, default=list)
    pre_accident_defects = db.Column(db.Text, nullable=True)
    other_defects = db.Column(db.Text, nullable=True)
    work_requested = db.Column(db.JSON, nullable=False, default=list)
    owner_instructions = db.Column(db.JSON, nullable=False, default=list)
    fuel_level = db.Column(db.String(16), nullable=True)
    assessment_file_url = db.Column(db.String(1024), nullable=True)
    assessment_file_name = db.Column(db.String(255), nullable=True)
    images = db.Column(db.JSON, nullable=False, default=list)
    status = db.Column(db.String(16), nullable=False, default="Completed")

    created_by = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now(), onupdate=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "vehicle_id": self.vehicle_id,
            "assessment_date": to_iso_date(self.assessment_date),
            "assessment_time": self.assessment_time,
            "conducted_name": self.conducted_name,
            "miles_in": self.miles_in,
            "color": self.color,
            "cr_number": self.cr_number,
            "damage_markers": self.damage_markers or [],
            "pre_accident_defects": self.pre_accident_defects,
            "other_defects": self.other_defects,
            "work_requested": self.work_requested or [],
            "owner_instructions": self.owner_instructions or [],
            "fuel_level": self.fuel_level,
            "assessment_file_url": self.assessment_file_url,
            "assessment_file_name": self.assessment_file_name,
            "images": self.images or [],
            "status": self.status,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class TimelineEntry(db.Model):
    """
    Append-only history row for a vehicle.

    Never updated or deleted through the API; removed only with the vehicle.
    """
    __tablename__ = "vehicle_timeline"
    __table_args__ = (
        db.Index("ix_timeline_vehicle_created", "vehicle_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    vehicle_id = db.Column(db.Integer, db.ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False)
    action = db.Column(db.String(128), nullable=False)
    action_date = db.Column(db.Date, nullable=False)
    action_time = db.Column(db.String(8), nullable=False)
    cost = db.Column(Money, nullable=True)
    expense_value = db.Column(Money, nullable=True)
    note = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(32), nullable=True)

    user_id = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    user = db.relationship("Profile", foreign_keys=[user_id])

    def to_dict(self):
        return {
            "id": self.id,
            "vehicle_id": self.vehicle_id,
            "action": self.action,
            "action_date": to_iso_date(self.action_date),
            "action_time": self.action_time,
            "cost": self.cost,
            "expense_value": self.expense_value,
            "note": self.note,
            "status": self.status,
            "user_id": self.user_id,
            "user": self.user.to_summary() if self.user else None,
            "created_at": to_utc_z(self.created_at),
        }
