"""Domain models - pure Python dataclasses mirroring backend tables and views"""

from dataclasses import dataclass, field
from typing import Dict, Optional

RENT = "rent"
WATER = "water"

BILLED_KINDS = (RENT, WATER)


@dataclass
class House:
    """House registered in the backend"""

    id: str
    code: str
    owner: str
    is_repair_fund: bool = False


@dataclass
class PeriodStatus:
    """Bill/paid/due for one house, one kind and one period (v_rent_status / v_water_status)"""

    house_id: str
    period: str
    bill: float = 0.0
    paid: float = 0.0
    due: float = 0.0


@dataclass
class StatusRow:
    """Per-house summary across the selected periods"""

    house_id: str
    code: str
    owner: str
    is_repair_fund: bool = False
    rent_bill: float = 0.0
    rent_paid: float = 0.0
    rent_due: float = 0.0
    water_bill: float = 0.0
    water_paid: float = 0.0
    water_due: float = 0.0


@dataclass
class Totals:
    bill: float = 0.0
    paid: float = 0.0
    due: float = 0.0


@dataclass
class Payment:
    """Payment record; voided payments keep their row with voided_at set"""

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


@dataclass
class Rent:
    """Rent tariff of a house for a period"""

    id: str
    house_id: str
    code: str
    amount: float


@dataclass
class WaterRow:
    """Meter readings and computed share for one house"""

    house_id: str
    code: str
    owner: str
    prev_reading: Optional[float]
    curr_reading: Optional[float]
    usage: float
    share: float
    meter: str
    warning: Optional[str] = None


@dataclass
class PasteEntry:
    house_id: str
    code: str
    value: str
    warning: Optional[str] = None


@dataclass
class PasteResult:
    entries: list = field(default_factory=list)
    unmatched: list = field(default_factory=list)

    @property
    def summary(self) -> str:
        text = f"Baris diterapkan: {len(self.entries)}"
        if self.unmatched:
            text += f" · Tidak dikenal: {', '.join(self.unmatched)}"
        return text


@dataclass
class Repair:
    """Repair-fund expense; soft-deleted rows keep deleted_at"""

    id: str
    period: str
    house_id: Optional[str]
    description: str
    amount: float
    deleted_at: Optional[str] = None
    house_code: Optional[str] = None
    house_owner: Optional[str] = None


@dataclass
class OwnerSummary:
    owner: str
    rent_bill: float = 0.0
    rent_paid: float = 0.0
    rent_due: float = 0.0
    water_bill: float = 0.0
    water_paid: float = 0.0
    water_due: float = 0.0


@dataclass
class FundSummary:
    contrib: float
    spent: float
    balance: float


@dataclass
class AuditEntry:
    """Row of the v_audits view"""

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


@dataclass
class Actor:
    """Authenticated admin user"""

    user_id: str
    email: str
    access_token: str

    @property
    def name(self) -> str:
        return self.email.split("@")[0] if self.email else ""


StatusMap = Dict[str, Dict[str, PeriodStatus]]
