from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, field_validator

from app.core.coercion import (
    clean_float,
    clean_identifier,
    clean_optional_float,
    clean_pincode,
    normalize_order_type,
    normalize_zone,
)


class OrderType(str, Enum):
    PREPAID = "Prepaid"
    COD = "COD"
    RTO = "RTO"
    RETURN = "Return"


class Zone(str, Enum):
    A = "A"  # same metro hub
    B = "B"  # same state
    C = "C"  # cross-state
    D = "D"  # difficult terrain
    E = "E"  # extreme remote


class ShipmentRow(BaseModel):
    awb: str = Field(alias="AWB")
    order_type: str = Field("", alias="OrderType")
    billed_weight: float = Field(0.0, alias="BilledWeight")
    actual_weight: float = Field(0.0, alias="ActualWeight")
    billed_zone: str = Field("", alias="BilledZone")
    actual_zone: str = Field("", alias="ActualZone")
    total_billed_amount: float = Field(0.0, alias="TotalBilledAmount")
    length: Optional[float] = Field(None, alias="Length")
    width: Optional[float] = Field(None, alias="Width")
    height: Optional[float] = Field(None, alias="Height")
    origin_pincode: Optional[str] = Field(None, alias="OriginPincode")
    dest_pincode: Optional[str] = Field(None, alias="DestPincode")
    provider: Optional[str] = Field(None, alias="Provider")
    shipment_date: Optional[str] = Field(None, alias="ShipmentDate")

    class Config:
        frozen = True
        populate_by_name = True

    @field_validator("awb", mode="before")
    @classmethod
    def _awb(cls, v):
        return clean_identifier(v)

    @field_validator("order_type", mode="before")
    @classmethod
    def _order_type(cls, v):
        return normalize_order_type(v)

    @field_validator("billed_weight", "actual_weight", "total_billed_amount", mode="before")
    @classmethod
    def _numeric(cls, v):
        return clean_float(v)

    @field_validator("length", "width", "height", mode="before")
    @classmethod
    def _dimension(cls, v):
        return clean_optional_float(v)

    @field_validator("billed_zone", "actual_zone", mode="before")
    @classmethod
    def _zone(cls, v):
        return normalize_zone(v)

    @field_validator("origin_pincode", "dest_pincode", mode="before")
    @classmethod
    def _pincode(cls, v):
        return clean_pincode(v)

    @field_validator("provider", "shipment_date", mode="before")
    @classmethod
    def _text(cls, v):
        return clean_identifier(v) or None

    @property
    def is_return(self) -> bool:
        return self.order_type in (OrderType.RTO.value, OrderType.RETURN.value)


class ContractRules(BaseModel):
    zone_a_rate: float
    zone_b_rate: float
    zone_c_rate: float
    zone_d_rate: Optional[float] = None
    zone_e_rate: Optional[float] = None
    cod_fee_percentage: float = 0.0
    rto_flat_fee: float = 0.0
    fuel_surcharge_percentage: float = 12.0
    docket_charge: float = 25.0
    gst_percentage: float = 18.0

    class Config:
        frozen = True


class CustomContract(ContractRules):
    provider_name: str

    def rules(self) -> ContractRules:
        return ContractRules(**self.model_dump(exclude={"provider_name"}))


class BreakdownDetail(BaseModel):
    zone: str
    zone_source: str  # "pincode" | "stated"
    billed_zone: str
    dead_weight: float
    volumetric_weight: Optional[float] = None
    chargeable_weight: float
    billed_weight: float
    slabs: int = 0
    zone_rate: float = 0.0
    base_freight: float = 0.0
    fuel_surcharge: float = 0.0
    docket_charge: float = 0.0
    cod_fee: float = 0.0
    rto_fee: float = 0.0
    pre_gst: float
    gst: float
    expected_total: float


class Discrepancy(BaseModel):
    awb_number: str
    issue_type: str
    billed_amount: float
    correct_amount: float
    difference: float
    breakdown: Optional[BreakdownDetail] = None


class AnalysisResult(BaseModel):
    discrepancies: List[Discrepancy] = []
    total_overcharge: float = 0.0
    total_rows: int = 0
    total_billed: float = 0.0


class ProviderMatch(BaseModel):
    canonical: str
    confidence: float


class ProviderGroups(BaseModel):
    known: Dict[str, List[ShipmentRow]] = {}
    unknown: Dict[str, List[ShipmentRow]] = {}


class GroupAuditResult(BaseModel):
    provider: str
    known: bool
    confidence: Optional[float] = None
    mode: str  # "full" | "partial"
    row_count: int
    result: AnalysisResult


class UnknownProvider(BaseModel):
    name: str
    row_count: int


class BatchAuditReport(BaseModel):
    groups: List[GroupAuditResult] = []
    combined: AnalysisResult
    unknown_providers: List[UnknownProvider] = []


# ── API payloads ────────────────────────────────────────────────────────────

class AuditRequest(BaseModel):
    rows: List[Dict[str, Any]]
    contract: Optional[ContractRules] = None
    provider_contracts: Dict[str, ContractRules] = {}


class ReauditRequest(BaseModel):
    rows: List[Dict[str, Any]]


class ClassifyRequest(BaseModel):
    names: List[str]


class ClassifyOut(BaseModel):
    name: str
    canonical: Optional[str] = None
    confidence: float = 0.0


class HeaderMapRequest(BaseModel):
    rawHeaders: List[str]


class ExtractedContract(BaseModel):
    provider_name: Optional[str] = None
    contract: ContractRules


class CustomContractOut(CustomContract):
    provider_key: str
    created_at: datetime
    updated_at: datetime
