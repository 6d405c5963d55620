from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional

from foamboss.models.estimate_schema import PricingConfig

PayType = Literal["Hourly", "Percentage", "Salary", "None"]
UserStatus = Literal["Active", "Inactive", "Paused", "Vacation"]


class UserSetting(BaseModel):
    """Crew member or office user listed under business settings."""
    model_config = ConfigDict(allow_inf_nan=False)

    id: str
    name: str = Field(..., min_length=1)
    role: str = "Installer"
    status: UserStatus = "Active"
    pay_type: PayType = "Hourly"
    hourly_rate: Optional[float] = Field(None, ge=0)
    percentage_rate: Optional[float] = Field(None, ge=0, le=100)
    email: Optional[str] = None


class CompanyProfile(BaseModel):
    company_name: str = ""
    address: str = ""
    phone: str = ""
    license_number: str = ""


class BusinessSettings(BaseModel):
    """Everything the settings screens own for one business."""
    business_id: Optional[str] = None
    company: CompanyProfile = Field(default_factory=CompanyProfile)
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    users: List[UserSetting] = Field(default_factory=list)
