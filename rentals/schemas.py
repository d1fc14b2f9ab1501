# rentals/schemas.py
# JSON payload models for the /api routes. Create models list what must be
# sent; Update models are all-optional and read with exclude_unset.
import re
from datetime import date, datetime
from typing import List, Literal, Optional

from email_validator import EmailNotValidError, validate_email
from flask import request
from pydantic import BaseModel, Field, field_validator, model_validator

from rentals.errors import ValidationError

RoomStatus = Literal["vacant", "reserved", "occupied", "maintenance"]
Gender = Literal["male", "female", "other"]
PaymentCycle = Literal["monthly", "quarterly", "yearly"]
ContractStatus = Literal["active", "expired", "cancelled"]
PaymentMethod = Literal["cash", "bank_transfer", "e_wallet"]
IncidentType = Literal["utilities", "furniture", "cleaning", "security", "other"]
IncidentPriority = Literal["low", "medium", "high", "urgent"]
IncidentStatus = Literal["new", "in_progress", "done", "cancelled"]
NotificationType = Literal["general", "invoice", "incident", "contract", "other"]
UserRole = Literal["admin", "owner", "staff"]
ReportType = Literal["revenue", "rooms", "contracts", "payments"]


def parse_payload(model, data=None):
    """Validate the request JSON (or ``data``) against a pydantic model."""
    if data is None:
        data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return model.model_validate(data)


def _room_code(value):
    value = value.strip().upper()
    if not re.fullmatch(r"[A-Z0-9]+", value):
        raise ValueError("Room code may only contain letters and digits")
    return value


def _check_email(value):
    # same rules as the WTForms Email() validator on the login page
    if value in (None, ""):
        return None
    try:
        checked = validate_email(value.strip(), check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(f"Invalid email address: {exc}") from exc
    return checked.normalized.lower()


# ─── Auth ──────────────────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v):
        return _check_email(v)


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str
    password: str = Field(min_length=6)
    phone: Optional[str] = Field(default=None, pattern=r"^\d{10,11}$")

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v):
        return _check_email(v)


class UserCreate(RegisterRequest):
    role: UserRole = "staff"
    is_active: bool = True


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=6)
    phone: Optional[str] = Field(default=None, pattern=r"^\d{10,11}$")
    address: Optional[str] = Field(default=None, max_length=300)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v):
        return _check_email(v)


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone: Optional[str] = Field(default=None, pattern=r"^\d{10,11}$")
    address: Optional[str] = Field(default=None, max_length=300)
    avatar: Optional[str] = None
    current_password: Optional[str] = None
    new_password: Optional[str] = Field(default=None, min_length=6)

    @model_validator(mode="after")
    def current_password_for_change(self):
        if self.new_password and not self.current_password:
            raise ValueError("Current password is required to set a new one")
        return self


class TenantLogin(BaseModel):
    phone: str = Field(pattern=r"^\d{10,11}$")
    password: str = Field(min_length=1)


class ReportQuery(BaseModel):
    type: ReportType = "revenue"
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    format: Literal["json", "csv"] = "json"


# ─── Building / Room ───────────────────────────────────────────────────────

class Address(BaseModel):
    house_no: str = ""
    street: str
    ward: str
    district: str
    city: str


class BuildingCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    address: Address
    description: Optional[str] = None
    images: List[str] = []
    total_rooms: int = Field(default=0, ge=0)
    shared_amenities: List[str] = []


class BuildingUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    address: Optional[Address] = None
    description: Optional[str] = None
    images: Optional[List[str]] = None
    total_rooms: Optional[int] = Field(default=None, ge=0)
    shared_amenities: Optional[List[str]] = None


class RoomCreate(BaseModel):
    code: str = Field(min_length=1, max_length=20)
    building_id: int
    floor: int = Field(default=0, ge=0)
    area: float = Field(gt=0)
    rent: int = Field(ge=0)
    deposit: int = Field(default=0, ge=0)
    description: Optional[str] = None
    images: List[str] = []
    amenities: List[str] = []
    max_occupants: int = Field(default=1, ge=1, le=10)
    status: RoomStatus = "vacant"

    @field_validator("code")
    @classmethod
    def upper_code(cls, v):
        return _room_code(v)


class RoomUpdate(BaseModel):
    code: Optional[str] = Field(default=None, min_length=1, max_length=20)
    building_id: Optional[int] = None
    floor: Optional[int] = Field(default=None, ge=0)
    area: Optional[float] = Field(default=None, gt=0)
    rent: Optional[int] = Field(default=None, ge=0)
    deposit: Optional[int] = Field(default=None, ge=0)
    description: Optional[str] = None
    images: Optional[List[str]] = None
    amenities: Optional[List[str]] = None
    max_occupants: Optional[int] = Field(default=None, ge=1, le=10)
    status: Optional[RoomStatus] = None

    @field_validator("code")
    @classmethod
    def upper_code(cls, v):
        return None if v is None else _room_code(v)


# ─── Tenant ────────────────────────────────────────────────────────────────

class IdCard(BaseModel):
    front: str = ""
    back: str = ""


class TenantCreate(BaseModel):
    full_name: str = Field(min_length=1, max_length=100)
    phone: str = Field(pattern=r"^\d{10,11}$")
    email: Optional[str] = None
    national_id: str = Field(pattern=r"^\d{12}$")
    birth_date: date
    gender: Gender
    hometown: str = Field(min_length=1, max_length=200)
    occupation: Optional[str] = None
    id_card: IdCard = IdCard()
    password: Optional[str] = Field(default=None, min_length=6)

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v):
        return _check_email(v)


class TenantUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone: Optional[str] = Field(default=None, pattern=r"^\d{10,11}$")
    email: Optional[str] = None
    national_id: Optional[str] = Field(default=None, pattern=r"^\d{12}$")
    birth_date: Optional[date] = None
    gender: Optional[Gender] = None
    hometown: Optional[str] = Field(default=None, min_length=1, max_length=200)
    occupation: Optional[str] = None
    id_card: Optional[IdCard] = None
    password: Optional[str] = Field(default=None, min_length=6)

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v):
        return _check_email(v)


# ─── Contract ──────────────────────────────────────────────────────────────

class ServiceFee(BaseModel):
    name: str = Field(min_length=1)
    price: int = Field(ge=0)


class ContractCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    room_id: int
    tenant_ids: List[int] = Field(min_length=1)
    representative_id: int
    start_date: date
    end_date: date
    rent: int = Field(ge=0)
    deposit: int = Field(default=0, ge=0)
    payment_cycle: PaymentCycle = "monthly"
    payment_day: int = Field(ge=1, le=31)
    terms: str = ""
    electricity_rate: int = Field(ge=0)
    water_rate: int = Field(ge=0)
    electricity_start: int = Field(default=0, ge=0)
    water_start: int = Field(default=0, ge=0)
    service_fees: List[ServiceFee] = []
    status: ContractStatus = "active"
    contract_file: Optional[str] = None

    @field_validator("code")
    @classmethod
    def upper_code(cls, v):
        return v.strip().upper()

    @model_validator(mode="after")
    def check_dates_and_representative(self):
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        if self.representative_id not in self.tenant_ids:
            raise ValueError("Representative must be one of the contract's tenants")
        return self


class ContractUpdate(BaseModel):
    code: Optional[str] = Field(default=None, min_length=1, max_length=50)
    room_id: Optional[int] = None
    tenant_ids: Optional[List[int]] = Field(default=None, min_length=1)
    representative_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    rent: Optional[int] = Field(default=None, ge=0)
    deposit: Optional[int] = Field(default=None, ge=0)
    payment_cycle: Optional[PaymentCycle] = None
    payment_day: Optional[int] = Field(default=None, ge=1, le=31)
    terms: Optional[str] = None
    electricity_rate: Optional[int] = Field(default=None, ge=0)
    water_rate: Optional[int] = Field(default=None, ge=0)
    electricity_start: Optional[int] = Field(default=None, ge=0)
    water_start: Optional[int] = Field(default=None, ge=0)
    service_fees: Optional[List[ServiceFee]] = None
    status: Optional[ContractStatus] = None
    contract_file: Optional[str] = None


# ─── Meter readings ────────────────────────────────────────────────────────

class MeterReadingCreate(BaseModel):
    room_id: int
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2020)
    electricity_old: int = Field(ge=0)
    electricity_new: int = Field(ge=0)
    water_old: int = Field(ge=0)
    water_new: int = Field(ge=0)
    electricity_photo: Optional[str] = None
    water_photo: Optional[str] = None
    recorded_on: Optional[date] = None

    @model_validator(mode="after")
    def not_backwards(self):
        if self.electricity_new < self.electricity_old:
            raise ValueError("New electricity reading cannot be lower than the old reading")
        if self.water_new < self.water_old:
            raise ValueError("New water reading cannot be lower than the old reading")
        return self


class MeterReadingUpdate(BaseModel):
    month: Optional[int] = Field(default=None, ge=1, le=12)
    year: Optional[int] = Field(default=None, ge=2020)
    electricity_old: Optional[int] = Field(default=None, ge=0)
    electricity_new: Optional[int] = Field(default=None, ge=0)
    water_old: Optional[int] = Field(default=None, ge=0)
    water_new: Optional[int] = Field(default=None, ge=0)
    electricity_photo: Optional[str] = None
    water_photo: Optional[str] = None
    recorded_on: Optional[date] = None


# ─── Invoices / payments ───────────────────────────────────────────────────

class InvoiceCreate(BaseModel):
    # status / paid / remaining are derived and never read from the client
    contract_id: int
    code: Optional[str] = None
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2020)
    rent: Optional[int] = Field(default=None, ge=0)
    electricity_start: Optional[int] = Field(default=None, ge=0)
    electricity_end: Optional[int] = Field(default=None, ge=0)
    water_start: Optional[int] = Field(default=None, ge=0)
    water_end: Optional[int] = Field(default=None, ge=0)
    service_fees: Optional[List[ServiceFee]] = None
    due_date: Optional[date] = None
    note: Optional[str] = None


class InvoiceUpdate(BaseModel):
    id: int
    contract_id: Optional[int] = None
    code: Optional[str] = None
    month: Optional[int] = Field(default=None, ge=1, le=12)
    year: Optional[int] = Field(default=None, ge=2020)
    rent: Optional[int] = Field(default=None, ge=0)
    electricity_start: Optional[int] = Field(default=None, ge=0)
    electricity_end: Optional[int] = Field(default=None, ge=0)
    water_start: Optional[int] = Field(default=None, ge=0)
    water_end: Optional[int] = Field(default=None, ge=0)
    service_fees: Optional[List[ServiceFee]] = None
    due_date: Optional[date] = None
    note: Optional[str] = None


class TransferInfo(BaseModel):
    bank: str = Field(min_length=1)
    transaction_no: str = Field(min_length=1)


class PaymentCreate(BaseModel):
    invoice_id: int
    amount: int = Field(ge=1)
    method: PaymentMethod
    transfer: Optional[TransferInfo] = None
    paid_on: Optional[datetime] = None
    note: Optional[str] = None
    receipt_url: Optional[str] = None

    @model_validator(mode="after")
    def transfer_required(self):
        if self.method == "bank_transfer" and self.transfer is None:
            raise ValueError("Bank transfer details are required for bank transfers")
        return self


class PaymentUpdate(PaymentCreate):
    pass


# ─── Incidents / notifications ─────────────────────────────────────────────

class IncidentCreate(BaseModel):
    room_id: int
    tenant_id: int
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    images: List[str] = []
    type: IncidentType
    priority: IncidentPriority = "medium"
    status: IncidentStatus = "new"


class IncidentUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, min_length=1)
    images: Optional[List[str]] = None
    type: Optional[IncidentType] = None
    priority: Optional[IncidentPriority] = None
    status: Optional[IncidentStatus] = None
    handler_id: Optional[int] = None
    handler_note: Optional[str] = None


class NotificationCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    type: NotificationType = "general"
    recipients: List[int] = []
    rooms: List[int] = []
    building_id: Optional[int] = None


class NotificationUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    content: Optional[str] = Field(default=None, min_length=1)
    type: Optional[NotificationType] = None
    recipients: Optional[List[int]] = None
    rooms: Optional[List[int]] = None
    building_id: Optional[int] = None


class MarkRead(BaseModel):
    tenant_id: int
