"""
Postal code (CEP) lookup against a ViaCEP-compatible service.

No API key required. A lookup either returns the address, returns None when the
code does not exist, or raises PostalLookupError on transport failures.
"""

import logging
from typing import Optional

import httpx

from .. import config
from ..domain.intake.schemas import AddressLookupResult
from ..shared.validators import only_digits

logger = logging.getLogger(__name__)


class PostalLookupError(Exception):
    """The lookup service could not be reached or answered with garbage"""


class PostalLookupClient:
    """Client for the postal lookup service"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or config.POSTAL_LOOKUP_BASE_URL).rstrip("/")
        self.timeout = config.POSTAL_LOOKUP_TIMEOUT_SECONDS if timeout is None else timeout
        self.transport = transport

    async def lookup(self, postal_code: str) -> Optional[AddressLookupResult]:
        """
        Look up the address for a postal code.

        Args:
            postal_code: CEP, formatted or digits only

        Returns:
            AddressLookupResult, or None when the code is unknown

        Raises:
            PostalLookupError: On network errors or unexpected responses
        """
        digits = only_digits(postal_code)
        if len(digits) != 8:
            raise ValueError("Postal code must have 8 digits")

        url = f"{self.base_url}/{digits}/json/"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.get(url, headers={"Accept": "application/json"})
        except httpx.HTTPError as e:
            logger.error(f"❌ Postal lookup request failed for {digits}: {e}")
            raise PostalLookupError("Postal lookup request failed") from e

        # ViaCEP answers 400 for malformed codes and {"erro": true} for unknown ones
        if resp.status_code in (400, 404):
            logger.debug(f"Postal code {digits} not found ({resp.status_code})")
            return None

        if resp.status_code >= 400:
            logger.warning(f"Postal lookup error {resp.status_code}: {resp.text[:200]}")
            raise PostalLookupError(f"Postal lookup service returned {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise PostalLookupError("Postal lookup returned invalid JSON") from e

        if not isinstance(data, dict):
            raise PostalLookupError("Postal lookup returned an unexpected payload")

        if data.get("erro") in (True, "true"):
            logger.debug(f"Postal code {digits} not found")
            return None

        return AddressLookupResult(
            postal_code=data.get("cep") or f"{digits[:5]}-{digits[5:]}",
            street=data.get("logradouro") or "",
            neighborhood=data.get("bairro") or "",
            city=data.get("localidade") or "",
            region=data.get("uf") or "",
            complement=data.get("complemento") or "",
        )
