import logging
from typing import Any, Optional, Union

import httpx

from .. import config
from ..domain.intake.schemas import ProfileLookup, ProfileUpdate

logger = logging.getLogger(__name__)


class ProfileServiceError(Exception):
    """Raised when the profile service rejects a request or cannot be reached"""


class ProfileServiceClient:
    """Client for the user profile persistence service"""

    LOOKUP_PATH = "/usuarios/verificar-cadastro"
    SUBMIT_PATH = "/usuarios/segunda-fase"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or config.PROFILE_SERVICE_URL).rstrip("/")
        self.timeout = config.PROFILE_SERVICE_TIMEOUT_SECONDS if timeout is None else timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    async def fetch_by_id(self, user_id: Union[int, str]) -> Optional[ProfileLookup]:
        """Fetch the first-phase profile of a user, None if unknown"""
        return await self._lookup({"idUsuario": str(user_id)})

    async def fetch_by_email(self, email: str) -> Optional[ProfileLookup]:
        """Fetch the first-phase profile registered with an email, None if unknown"""
        return await self._lookup({"email": email})

    async def _lookup(self, params: dict[str, str]) -> Optional[ProfileLookup]:
        try:
            async with self._client() as client:
                response = await client.get(self.LOOKUP_PATH, params=params)
        except httpx.HTTPError as e:
            logger.error(f"❌ Profile lookup failed: {e}")
            raise ProfileServiceError("Could not reach the profile service") from e

        if response.status_code == 404:
            return None

        if response.status_code >= 400:
            logger.warning(f"Profile lookup error {response.status_code}: {response.text[:200]}")
            raise ProfileServiceError(f"Profile lookup failed ({response.status_code})")

        if "application/json" not in response.headers.get("content-type", ""):
            raise ProfileServiceError("Unexpected response from the profile service (not JSON)")

        data: dict[str, Any] = response.json() or {}
        if not data:
            return None

        return ProfileLookup(
            user_id=data.get("idUsuario"),
            first_name=data.get("nome"),
            last_name=data.get("sobrenome"),
            email=data.get("email"),
            cpf=data.get("cpf"),
            birth_date=data.get("dataNascimento"),
        )

    async def submit(self, user_id: Optional[Union[int, str]], payload: ProfileUpdate) -> None:
        """
        Submit the completed intake form as a partial profile update.

        Raises:
            ProfileServiceError: With a message suitable for the user
        """
        params = {"idUsuario": str(user_id)} if user_id else None
        body = payload.model_dump(by_alias=True)

        logger.info(f"📤 Submitting intake form for user {user_id or 'new'}")

        try:
            async with self._client() as client:
                response = await client.post(
                    self.SUBMIT_PATH,
                    params=params,
                    json=body,
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ Intake submission failed: {e}")
            raise ProfileServiceError("Could not reach the profile service, please try again") from e

        if response.status_code >= 400:
            logger.error(f"❌ Intake submission rejected {response.status_code}: {response.text[:500]}")
            message = "Could not complete registration"
            try:
                detail = response.json()
                if isinstance(detail, dict) and detail.get("message"):
                    message = detail["message"]
            except ValueError:
                pass
            raise ProfileServiceError(message)

        logger.info(f"✅ Intake form submitted for user {user_id or 'new'}")
