from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


class PaymentRequest(BaseModel):
    phone: Union[int, str] = Field(..., description="Payer MSISDN, e.g. 254708374149")
    amount: float = Field(..., gt=0, allow_inf_nan=False, description="Amount to charge")

    @field_validator("phone", "amount", mode="before")
    @classmethod
    def booleans_are_not_numbers(cls, value):
        if isinstance(value, bool):
            raise ValueError("must be a number, not a boolean")
        return value

    @field_validator("phone")
    @classmethod
    def phone_must_be_msisdn(cls, value):
        if isinstance(value, int):
            if value <= 0:
                raise ValueError("phone must be a positive number")
            return value
        digits = value.strip().lstrip("+")
        if not digits.isdigit():
            raise ValueError("phone must contain digits only")
        return int(digits)

    @field_validator("amount")
    @classmethod
    def whole_amounts_stay_integers(cls, value):
        # 10 goes out as 10, not 10.0
        return int(value) if float(value).is_integer() else value


class TokenResponse(BaseModel):
    access_token: str = Field(..., min_length=1)
    expires_in: Optional[Union[int, str]] = None


class StkPushPayload(BaseModel):
    """Body of a Lipa na M-Pesa Online (STK push) request."""
    model_config = ConfigDict(frozen=True)

    BusinessShortCode: str
    Password: str
    Timestamp: str
    TransactionType: str
    Amount: Union[int, float]
    PartyA: int
    PartyB: str
    PhoneNumber: int
    CallBackURL: str
    AccountReference: str
    TransactionDesc: str
