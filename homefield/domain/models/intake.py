"""
Intake Domain Models
Public-facing submission payloads (camelCase on the wire)
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IntakeModel(BaseModel):
    """Base for public payloads: unknown keys dropped, numbers accepted as text.

    Form fields are free text; any other JSON value (booleans, lists,
    objects) is read as absent rather than rejecting the submission.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    @field_validator("*", mode="before")
    @classmethod
    def non_text_as_null(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, str):
            return value
        return None


class OnboardingSubmission(IntakeModel):
    """Client onboarding form"""
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    legal_business_name: Optional[str] = Field(default=None, alias="legalBusinessName")
    business_ein: Optional[str] = Field(default=None, alias="businessEin")
    working_hours: Optional[str] = Field(default=None, alias="workingHours")
    business_phone: Optional[str] = Field(default=None, alias="businessPhone")
    street_address: Optional[str] = Field(default=None, alias="streetAddress")
    city: Optional[str] = None
    postal_code: Optional[str] = Field(default=None, alias="postalCode")
    state: Optional[str] = None
    country: Optional[str] = None
    website_url: Optional[str] = Field(default=None, alias="websiteUrl")
    cell_phone_for_notifications: Optional[str] = Field(default=None, alias="cellPhoneForNotifications")
    email_for_notifications: Optional[str] = Field(default=None, alias="emailForNotifications")
    business_email_for_leads: Optional[str] = Field(default=None, alias="businessEmailForLeads")
    advertising_area: Optional[str] = Field(default=None, alias="advertisingArea")
    time_zone: Optional[str] = Field(default=None, alias="timeZone")
    image_sharing_url: Optional[str] = Field(default=None, alias="imageSharingUrl")
    onboarding_call_booked: Optional[str] = Field(default=None, alias="onboardingCallBooked")
    questions: Optional[str] = None


class VslSubmission(IntakeModel):
    """VSL page confirmation ('watched_vsl' or 'new_lead')"""
    type: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    business_name: Optional[str] = Field(default=None, alias="businessName")
    service_type: Optional[str] = Field(default=None, alias="serviceType")
    service_area: Optional[str] = Field(default=None, alias="serviceArea")
    current_leads: Optional[str] = Field(default=None, alias="currentLeads")
    phone: Optional[str] = None
    timestamp: Optional[str] = None


class RoofingCallRequest(IntakeModel):
    """Roofing demo form that triggers an outbound AI call"""
    phone: str
    name: Optional[str] = None
    address: Optional[str] = None
    roofing_concern: Optional[str] = Field(default=None, alias="roofingConcern")


class IntakeOutcome(BaseModel):
    """What the onboarding orchestrator did"""
    client_id: str
    persisted: bool
    notified: bool
