"""
Address enrichment from the postal lookup service.

Lookups are never cancelled when the user keeps typing. Each one carries the
postal code it was issued for, and its result is applied only while that code
is still the latest issued and still matches the form.
"""

import asyncio
import logging
from typing import Callable, Optional

from ... import config
from ...services.postal_lookup import PostalLookupClient
from ...shared.validators import POSTAL_CODE_PATTERN, only_digits
from .schemas import AddressLookupResult, FormState
from .validation_store import ValidationStateStore

logger = logging.getLogger(__name__)

POSTAL_CODE_FIELD = "postal_code"
NOT_FOUND_MESSAGE = "Postal code not found"
LOOKUP_FAILED_MESSAGE = "Could not look up postal code"

# lookup result attribute -> form field
ADDRESS_FIELD_MAP = {
    "street": "street",
    "neighborhood": "neighborhood",
    "city": "city",
    "region": "state",
}


def lookup_token(postal_code: Optional[str]) -> Optional[str]:
    """Normalized code a lookup is issued for, None if the value is not complete"""
    value = (postal_code or "").strip()
    digits = only_digits(value)
    if len(digits) != 8:
        return None
    if value != digits and not POSTAL_CODE_PATTERN.match(value):
        return None
    return digits


class AddressEnrichmentAdapter:
    """Fills address fields from the postal code, discarding stale responses"""

    def __init__(
        self,
        client: PostalLookupClient,
        form: FormState,
        validation: ValidationStateStore,
        timeout: Optional[float] = None,
        on_applied: Optional[Callable[[list[str]], None]] = None,
    ):
        self.client = client
        self.form = form
        self.validation = validation
        self.timeout = config.POSTAL_LOOKUP_TIMEOUT_SECONDS if timeout is None else timeout
        self.on_applied = on_applied
        self.latest_token: Optional[str] = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def maybe_lookup(self, postal_code: str) -> Optional[asyncio.Task]:
        """Issue a lookup once the postal code is complete"""
        token = lookup_token(postal_code)
        if token is None:
            return None

        self.latest_token = token
        task = asyncio.get_running_loop().create_task(self._resolve(token))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug(f"Postal lookup issued for {token}")
        return task

    async def wait_idle(self) -> None:
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def cancel(self) -> None:
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()
        self.latest_token = None

    def is_current(self, token: str) -> bool:
        return token == self.latest_token and token == lookup_token(self.form.get(POSTAL_CODE_FIELD))

    async def _resolve(self, token: str) -> None:
        try:
            result = await asyncio.wait_for(self.client.lookup(token), timeout=self.timeout)
        except Exception as e:
            # PostalLookupError, timeouts and anything else the client raises
            if not self.is_current(token):
                logger.debug(f"Discarding stale lookup failure for {token}")
                return
            logger.warning(f"⚠️ Postal lookup failed for {token}: {e!r}")
            self.validation.apply(POSTAL_CODE_FIELD, False, LOOKUP_FAILED_MESSAGE)
            return

        if not self.is_current(token):
            logger.debug(f"Discarding stale lookup response for {token}")
            return

        if result is None:
            logger.info(f"Postal code {token} not found")
            self.validation.apply(POSTAL_CODE_FIELD, False, NOT_FOUND_MESSAGE)
            return

        self._apply(result)

    def _apply(self, result: AddressLookupResult) -> None:
        updated = []
        for attr, field in ADDRESS_FIELD_MAP.items():
            value = getattr(result, attr)
            self.form[field] = value
            if value:
                self.validation.apply(field, True)
            else:
                self.validation.reset_field(field)
            updated.append(field)

        if result.complement and not (self.form.get("complement") or "").strip():
            self.form["complement"] = result.complement
            updated.append("complement")

        logger.info(f"📍 Address filled from postal code {result.postal_code}")
        if self.on_applied:
            self.on_applied(updated)
