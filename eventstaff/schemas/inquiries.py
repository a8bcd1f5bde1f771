"""Schemas for the public contact form and the quote request wizard."""

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

PHONE_PATTERN = r'^[\d\s+\-()/]{8,}$'
POSTAL_CODE_PATTERN = r'^\d{5}$'


class ContactRequestCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=2)
    email: EmailStr
    message: str = Field(min_length=10)
    phone: Optional[str] = None
    mobile: Optional[str] = None
    company: Optional[str] = None
    event_type: Optional[str] = None
    callback_time: Optional[str] = None
    venue: Optional[str] = None


class EventDetailsStep(BaseModel):
    """Step 1: what, when, where and how many."""
    model_config = ConfigDict(str_strip_whitespace=True)

    event_title: str = Field(min_length=1)
    event_date: date
    is_multi_day: bool = False
    end_date: Optional[date] = None
    end_time: Optional[str] = None
    location_option: Literal['has_location', 'find_location'] = 'has_location'
    location: Optional[str] = None
    guest_count: str = Field(min_length=1)


class ServicesStep(BaseModel):
    """Step 2: requested services and technology."""
    tech_requirements: List[str] = Field(min_length=1)
    dj_genres: List[str] = Field(default_factory=list)
    photographer: bool = False
    videographer: bool = False
    light_operator: bool = False
    additional_wishes: Optional[str] = None


class ContactStep(BaseModel):
    """Step 3: the customer's contact details."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1)
    email: EmailStr
    phone: str = Field(pattern=PHONE_PATTERN)
    company: Optional[str] = None
    street: str = Field(min_length=1)
    house_number: str = Field(min_length=1)
    postal_code: str = Field(pattern=POSTAL_CODE_PATTERN)
    city: str = Field(min_length=1)


class StepValidationRequest(BaseModel):
    step: int
    data: dict = Field(default_factory=dict)


class EventRequestStatusUpdate(BaseModel):
    status: str
