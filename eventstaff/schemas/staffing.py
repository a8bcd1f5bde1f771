"""Schemas for staff registration, contracts, qualifications and event administration."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


class RegistrationCreate(BaseModel):
    category: str = Field(min_length=1)


class RegistrationUpdate(BaseModel):
    status: Optional[str] = None
    notes: Optional[str] = None


class StaffRequirementIn(BaseModel):
    category: str
    count: int = 0


class QualificationRequirementIn(BaseModel):
    category: str
    qualifications: List[Union[str, Dict[str, Any]]] = Field(default_factory=list)


class PricingEntryIn(BaseModel):
    category: str
    hourly_rate: Optional[float] = None
    fixed_rate: Optional[float] = None


class EventBase(BaseModel):
    title: str
    event_date: datetime
    location: str
    description: Optional[str] = None
    end_date: Optional[datetime] = None
    guest_count: Optional[int] = None
    staff_requirements: List[StaffRequirementIn] = Field(default_factory=list)
    qualification_requirements: List[QualificationRequirementIn] = Field(default_factory=list)
    pricing_structure: List[PricingEntryIn] = Field(default_factory=list)
    notes: Optional[str] = None
    contract_required: bool = False


class EventCreate(EventBase):
    pass


class EventUpdate(BaseModel):
    title: Optional[str] = None
    event_date: Optional[datetime] = None
    location: Optional[str] = None
    description: Optional[str] = None
    end_date: Optional[datetime] = None
    guest_count: Optional[int] = None
    staff_requirements: Optional[List[StaffRequirementIn]] = None
    qualification_requirements: Optional[List[QualificationRequirementIn]] = None
    pricing_structure: Optional[List[PricingEntryIn]] = None
    notes: Optional[str] = None
    contract_required: Optional[bool] = None


class ContractCreate(BaseModel):
    event_id: str
    staff_category: str
    job_title: str
    hourly_wage: Decimal
    additional_agreements: Optional[str] = None


class ContractSign(BaseModel):
    signature_data_url: Optional[str] = None
    use_existing_signature: bool = False


class QualificationCreate(BaseModel):
    name: str
    description: Optional[str] = None
    is_expirable: bool = False
    validity_period_months: Optional[int] = None


class QualificationRequestCreate(BaseModel):
    qualification_id: str
    notes: Optional[str] = None
    proof_files: List[str] = Field(default_factory=list)


class QualificationApproval(BaseModel):
    admin_notes: Optional[str] = None
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None


class QualificationRejection(BaseModel):
    admin_notes: Optional[str] = None


class RoleUpdate(BaseModel):
    role: str
    granted: bool = True
