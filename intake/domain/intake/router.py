"""Intake router - stateless helpers for the form shell"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from ...services.postal_lookup import PostalLookupClient, PostalLookupError
from .enrichment import lookup_token
from .fields import FIELDS, validate_field
from .schemas import (
    AddressLookupResult,
    FieldValidationRequest,
    ProfessionSuggestionsResponse,
    ValidationResult,
)
from .suggestions import ProfessionMatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/intake", tags=["Intake"])

matcher = ProfessionMatcher()


def get_postal_client() -> PostalLookupClient:
    return PostalLookupClient()


@router.get("/professions", response_model=ProfessionSuggestionsResponse)
async def profession_suggestions(search: str = ""):
    """Suggest up to five professions containing the search text"""
    return ProfessionSuggestionsResponse(suggestions=matcher.suggest(search))


@router.post("/validate", response_model=ValidationResult)
async def validate(data: FieldValidationRequest):
    """Run the validation rules of a single field"""
    if data.field not in FIELDS:
        raise HTTPException(status_code=422, detail=f"Unknown field: {data.field}")
    return validate_field(data.field, data.value)


@router.get("/postal-code/{postal_code}", response_model=AddressLookupResult)
async def postal_code_lookup(
    postal_code: str,
    client: PostalLookupClient = Depends(get_postal_client),
):
    """
    Address for a postal code.

    Returns 400 for malformed codes, 404 when the code does not exist and
    502 when the lookup service fails.
    """
    token = lookup_token(postal_code)
    if token is None:
        raise HTTPException(status_code=400, detail="Invalid postal code (format: 00000-000)")

    try:
        result = await client.lookup(token)
    except PostalLookupError as e:
        logger.error(f"Postal lookup error: {e}")
        raise HTTPException(status_code=502, detail="Address lookup service temporarily unavailable")

    if result is None:
        raise HTTPException(status_code=404, detail="Postal code not found")

    return result
