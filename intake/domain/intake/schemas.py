"""Intake domain schemas - Pydantic models for form state exchange"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field

FieldValue = Union[str, bool, None]
FormState = dict[str, FieldValue]


class FieldState(str, Enum):
    """Validation state of a single field"""

    DEFAULT = "default"
    VALID = "valid"
    INVALID = "invalid"


class ValidationResult(BaseModel):
    valid: bool
    message: str = ""


class PersistedSnapshot(BaseModel):
    """In-progress form data written by the autosave engine"""

    data: FormState
    changed_fields: set[str] = Field(default_factory=set)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AddressLookupResult(BaseModel):
    """Address returned by the postal lookup service"""

    postal_code: str
    street: str = ""
    neighborhood: str = ""
    city: str = ""
    region: str = ""
    complement: str = ""


class ProfileLookup(BaseModel):
    """Partial profile from an earlier registration phase"""

    user_id: Optional[int] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    cpf: Optional[str] = None
    birth_date: Optional[str] = None

    @property
    def full_name(self) -> Optional[str]:
        if not self.first_name:
            return None
        if self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.first_name


class PhonePayload(BaseModel):
    ddd: str
    prefixo: str
    sufixo: str
    whatsapp: bool


class AddressPayload(BaseModel):
    cep: str
    numero: str
    complemento: Optional[str] = None


class ProfileUpdate(BaseModel):
    """Schema for the second-phase profile submission"""

    full_name: str = Field(alias="nomeCompleto")
    email: str
    cpf: str
    birth_date: str = Field(alias="dataNascimento")
    min_income: float = Field(alias="rendaMinima")
    max_income: float = Field(alias="rendaMaxima")
    gender: str = Field(alias="genero")
    profession: str = Field(alias="profissao")
    orientation_area: str = Field(alias="areaOrientacao")
    referral_source: str = Field(alias="comoSoube")
    other_area_suggestion: Optional[str] = Field(default=None, alias="sugestaoOutraArea")
    kind: str = Field(default="NAO_CLASSIFICADO", alias="tipo")
    address: AddressPayload = Field(alias="endereco")
    phone: PhonePayload = Field(alias="telefone")
    is_volunteer: bool = Field(alias="isVoluntario")

    class Config:
        populate_by_name = True


class SubmissionResult(BaseModel):
    success: bool
    message: str = ""


# Request / response schemas for the HTTP surface


class FieldValidationRequest(BaseModel):
    field: str
    value: FieldValue = None


class ProfessionSuggestionsResponse(BaseModel):
    suggestions: list[str]
