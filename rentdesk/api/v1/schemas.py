"""Pydantic schemas for API request/response validation"""

from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"
PERIOD_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])-01$"

BilledKind = Literal["rent", "water"]
PaymentKind = Literal["rent", "water", "repair_contrib", "other"]
Amount = Union[float, str]


class MessageResponse(BaseModel):
    message: str


# Auth


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    actor_name: str


class SessionResponse(BaseModel):
    """Session diagnostics for troubleshooting sign-in"""

    env_has_url: bool
    token_present: bool
    access_token_first8: Optional[str] = None
    user_check_ok: bool
    actor_name: Optional[str] = None


# Houses / dashboard


class HouseSchema(BaseModel):
    id: str
    code: str
    owner: str
    is_repair_fund: bool = False


class PeriodStatusSchema(BaseModel):
    period: str
    bill: float
    paid: float
    due: float


class StatusRowSchema(BaseModel):
    house_id: str
    code: str
    owner: str
    is_repair_fund: bool
    rent_bill: float
    rent_paid: float
    rent_due: float
    water_bill: float
    water_paid: float
    water_due: float


class TotalsSchema(BaseModel):
    bill: float
    paid: float
    due: float


class DashboardResponse(BaseModel):
    """Response for GET /v1/dashboard"""

    mode: Literal["single", "range"]
    range_from: str
    range_to: str
    rows: List[StatusRowSchema]
    rent_totals: TotalsSchema
    water_totals: TotalsSchema
    # kind -> house_id -> periods
    periods: Dict[str, Dict[str, List[PeriodStatusSchema]]]


class DashboardPaymentRequest(BaseModel):
    """Request body for POST /v1/dashboard/payments"""

    house_id: str = Field(..., min_length=1)
    kind: BilledKind
    full: bool = False
    month: str = Field(..., pattern=MONTH_PATTERN)
    amount: Optional[Amount] = None
    paid_at: Optional[str] = None
    method: Optional[str] = None
    note: Optional[str] = None


class DashboardPaymentResponse(BaseModel):
    message: str
    label: str
    amount: float
    row: Optional[StatusRowSchema] = None
    period_status: Optional[PeriodStatusSchema] = None


class UndoRequest(BaseModel):
    house_id: str = Field(..., min_length=1)
    kind: BilledKind
    month: str = Field(..., pattern=MONTH_PATTERN)


class SettleRequest(BaseModel):
    """Request body for POST /v1/houses/{house_id}/settle"""

    kind: BilledKind
    month: str = Field(..., pattern=MONTH_PATTERN)
    paid_at: Optional[str] = None


# Payments


class PaymentSchema(BaseModel):
    id: str
    house_id: str
    period: str
    kind: str
    amount: float
    paid_at: Optional[str] = None
    method: Optional[str] = None
    note: Optional[str] = None
    voided_at: Optional[str] = None
    created_at: Optional[str] = None
    house_code: Optional[str] = None
    house_owner: Optional[str] = None


class DueSchema(BaseModel):
    bill: float
    paid: float
    due: float


class PaymentListResponse(BaseModel):
    period: str
    payments: List[PaymentSchema]
    rent_status: Dict[str, DueSchema]
    water_status: Dict[str, DueSchema]


class PaymentCreateRequest(BaseModel):
    """Request body for POST /v1/payments"""

    house_id: str = Field(..., min_length=1)
    month: str = Field(..., pattern=MONTH_PATTERN)
    kind: PaymentKind = "rent"
    amount: Amount
    paid_at: Optional[str] = None
    method: Optional[str] = None
    note: Optional[str] = None
    confirm_overpay: bool = False


class PaymentUpdateRequest(BaseModel):
    """Request body for PATCH /v1/payments/{payment_id}"""

    amount: Amount
    paid_at: Optional[str] = None
    method: Optional[str] = None
    note: Optional[str] = None
    confirm_overpay: bool = False


class VoidRequest(BaseModel):
    source: Literal["payments", "detail"] = "payments"


class HousePaymentsResponse(BaseModel):
    house: HouseSchema
    payments: List[PaymentSchema]


# Water


class WaterRowSchema(BaseModel):
    house_id: str
    code: str
    owner: str
    prev_reading: Optional[float] = None
    curr_reading: Optional[float] = None
    usage: float
    share: float
    meter: str
    warning: Optional[str] = None


class WaterResponse(BaseModel):
    """Response for GET /v1/water"""

    period: str
    prev_period: str
    rows: List[WaterRowSchema]
    meter_bills: Dict[str, float]
    usage_by_meter: Dict[str, float]
    share_by_meter: Dict[str, float]


class MeterBillsRequest(BaseModel):
    month: str = Field(..., pattern=MONTH_PATTERN)
    bills: Dict[str, float] = Field(default_factory=dict, description="meter code -> total amount")


class ReadingInput(BaseModel):
    house_id: str
    value: Amount
    reading_date: Optional[str] = None


class ReadingsRequest(BaseModel):
    month: str = Field(..., pattern=MONTH_PATTERN)
    reading_date: Optional[str] = None
    readings: List[ReadingInput]


class PasteRequest(BaseModel):
    month: str = Field(..., pattern=MONTH_PATTERN)
    text: str


class PasteEntrySchema(BaseModel):
    house_id: str
    code: str
    value: str
    warning: Optional[str] = None


class PasteResponse(BaseModel):
    summary: str
    entries: List[PasteEntrySchema]
    unmatched: List[str]


# Rents


class RentSchema(BaseModel):
    id: str
    house_id: str
    code: str
    amount: float


class RentListResponse(BaseModel):
    period: str
    next_period: str
    rents: List[RentSchema]


class CopyRentsRequest(BaseModel):
    period: str = Field(..., pattern=PERIOD_PATTERN)


class RentUpdateRequest(BaseModel):
    amount: Amount


# Repairs


class RepairSchema(BaseModel):
    id: str
    period: str
    house_id: Optional[str] = None
    description: str
    amount: float
    deleted_at: Optional[str] = None
    house_code: Optional[str] = None
    house_owner: Optional[str] = None
    house_label: str


class RepairListResponse(BaseModel):
    period: str
    repairs: List[RepairSchema]
    total_active: float


class RepairRequest(BaseModel):
    """Request body for creating or editing a repair expense"""

    month: str = Field(..., pattern=MONTH_PATTERN)
    house_id: Optional[str] = None
    description: str = ""
    amount: Amount


# Reports


class OwnerSummarySchema(BaseModel):
    owner: str
    rent_bill: float
    rent_paid: float
    rent_due: float
    water_bill: float
    water_paid: float
    water_due: float


class FundSummarySchema(BaseModel):
    contrib: float
    spent: float
    balance: float


class ReportResponse(BaseModel):
    """Response for GET /v1/reports"""

    range_from: str
    range_to: str
    owners: List[OwnerSummarySchema]
    fund: FundSummarySchema
    houses: List[StatusRowSchema]
    warnings: List[str] = Field(default_factory=list)


# Audits


class AuditSchema(BaseModel):
    id: str
    created_at: str
    action: str
    actor_name: Optional[str] = None
    period: Optional[str] = None
    kind: Optional[str] = None
    amount: Optional[float] = None
    note: Optional[str] = None
    house_id: Optional[str] = None
    house_code: Optional[str] = None
    house_owner: Optional[str] = None


class AuditPageResponse(BaseModel):
    entries: List[AuditSchema]
    offset: int
    has_more: bool
