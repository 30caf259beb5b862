"""
Request schemas for the Green Path API.

Each model validates one JSON request body. Create schemas ignore unknown
keys; update schemas reject them so clients cannot touch server-managed
fields such as ``user_id`` or ``social_points``.
"""
import re
from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator

Role = Literal["customer", "dealer", "organization", "admin"]
RegistrationRole = Literal["customer", "dealer", "organization"]
WasteCategory = Literal["plastic", "paper", "glass", "metal", "e_waste", "organic", "other"]
DonationCategory = Literal["clothing", "furniture", "electronics", "books", "other"]
ContentType = Literal["video", "article", "blog", "image", "event"]
FeedbackType = Literal[
    "pickup_service", "donation_process", "app_experience", "customer_service", "general"
]


def naive_utc(value):
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


UtcDateTime = Annotated[datetime, AfterValidator(naive_utc)]


class UpdateModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class Address(BaseModel):
    basic_address: str = Field(..., min_length=1, description="Street address")
    city: str = Field(..., min_length=1)
    pin_code: str = Field(..., min_length=1)
    village: Optional[str] = None


class Coordinates(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class Location(BaseModel):
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    pin_code: str = Field(..., min_length=1)
    coordinates: Optional[Coordinates] = None


# Auth / users

class UserRegister(BaseModel):
    username: str = Field(..., min_length=3, max_length=80)
    password: str
    full_name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    phone: str = Field(..., min_length=5, max_length=32)
    address: Address
    role: RegistrationRole = "customer"

    @field_validator("password")
    @classmethod
    def password_strength(cls, value):
        if len(value) < 8:
            raise ValueError("Password must be at least 8 characters")
        if not re.search(r"[A-Z]", value):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"[0-9]", value):
            raise ValueError("Password must contain at least one number")
        if not re.search(r"[^A-Za-z0-9]", value):
            raise ValueError("Password must contain at least one special character")
        return value


class EmailVerificationRequest(BaseModel):
    email: EmailStr


class OtpCheck(BaseModel):
    email: EmailStr
    otp: str = Field(..., pattern=r"^\d{6}$", description="Six digit code from the email")


class UserLogin(BaseModel):
    username: str = Field(..., min_length=1, description="Username or email")
    password: str = Field(..., min_length=1)


class UserRoleUpdate(UpdateModel):
    role: Role


# Waste reports

class WasteReportCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    location: Location
    images: List[str] = Field(default_factory=list)
    is_segregated: bool = False
    waste_category: WasteCategory


class WasteReportUpdate(UpdateModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    location: Optional[Location] = None
    images: Optional[List[str]] = None
    is_segregated: Optional[bool] = None
    waste_category: Optional[WasteCategory] = None
    status: Optional[Literal["pending", "scheduled", "in_progress", "completed", "rejected"]] = None
    scheduled_date: Optional[UtcDateTime] = None
    assigned_dealer_id: Optional[int] = None


# Donations

class DonationCreate(BaseModel):
    item_name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    category: DonationCategory
    images: List[str] = Field(default_factory=list)


class DonationUpdate(UpdateModel):
    item_name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[DonationCategory] = None
    images: Optional[List[str]] = None
    status: Optional[Literal["available", "requested", "matched", "completed"]] = None


# Events

class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    location: Location
    date: UtcDateTime
    max_participants: Optional[int] = Field(None, ge=1)
    image: Optional[str] = None


class EventUpdate(UpdateModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    location: Optional[Location] = None
    date: Optional[UtcDateTime] = None
    max_participants: Optional[int] = Field(None, ge=1)
    image: Optional[str] = None
    status: Optional[Literal["upcoming", "ongoing", "completed", "cancelled"]] = None


# Media

class MediaContentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    content_type: ContentType
    content: str = Field(..., min_length=1)
    tags: List[str] = Field(default_factory=list)
    published: bool = True


# Issues

class IssueCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    issue_type: str = Field(..., min_length=1, max_length=50)
    location: Location
    images: List[str] = Field(default_factory=list)
    is_urgent: bool = False
    request_community_help: bool = False


class IssueUpdate(UpdateModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    issue_type: Optional[str] = Field(None, min_length=1, max_length=50)
    location: Optional[Location] = None
    images: Optional[List[str]] = None
    is_urgent: Optional[bool] = None
    request_community_help: Optional[bool] = None
    status: Optional[Literal["pending", "assigned", "in_progress", "resolved", "rejected"]] = None


class IssueAssign(UpdateModel):
    organization_id: int


# Feedback

class FeedbackCreate(BaseModel):
    feedback_type: FeedbackType
    rating: int = Field(..., ge=1, le=5)
    comments: str = Field(..., min_length=1)


class FeedbackUpdate(UpdateModel):
    status: Literal["unread", "read", "resolved"]


class FeedbackAssign(UpdateModel):
    user_id: int


# Help requests

class HelpRequestCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    help_type: str = Field(..., min_length=1, max_length=50)
    location: Location
    scheduled_date: Optional[UtcDateTime] = None
    max_participants: Optional[int] = Field(None, ge=1)
    skills: List[str] = Field(default_factory=list)
    is_urgent: bool = False


class HelpRequestUpdate(UpdateModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    help_type: Optional[str] = Field(None, min_length=1, max_length=50)
    location: Optional[Location] = None
    scheduled_date: Optional[UtcDateTime] = None
    max_participants: Optional[int] = Field(None, ge=1)
    skills: Optional[List[str]] = None
    is_urgent: Optional[bool] = None
    status: Optional[Literal["pending", "approved", "in_progress", "completed", "rejected"]] = None
