"""Intake form service - one instance per screen hosting the form"""

import asyncio
import logging
from typing import Optional, Union

from ...services.postal_lookup import PostalLookupClient
from ...services.profile_service import ProfileServiceClient, ProfileServiceError
from ...shared.formatters import format_cpf, format_phone, format_postal_code
from ...snapshot_store import SnapshotStore, snapshot_key
from .autosave import AutosaveEngine
from .enrichment import LOOKUP_FAILED_MESSAGE, NOT_FOUND_MESSAGE, POSTAL_CODE_FIELD, AddressEnrichmentAdapter
from .fields import FIELDS, REQUIRED_FIELDS, empty_form, get_field
from .payload import build_profile_payload
from .progress import completion_percent, is_section_complete, section_summary
from .schemas import FieldState, FieldValue, ProfileLookup, SubmissionResult, ValidationResult
from .suggestions import ProfessionMatcher
from .validation_store import ValidationStateStore

logger = logging.getLogger(__name__)

FORMATTERS = {
    "cpf": format_cpf,
    "phone": format_phone,
    "postal_code": format_postal_code,
}

INCOMPLETE_FORM_MESSAGE = "Please fill in all required fields correctly."
SUBMITTED_MESSAGE = "Registration completed"


class IntakeFormService:
    """
    Service layer for one intake form.

    Owns the form state, its validation state, autosave and address
    enrichment. Create it with ``open`` and release it with ``close``.
    """

    def __init__(
        self,
        identifier: str,
        store: SnapshotStore,
        postal_client: PostalLookupClient,
        profile_client: ProfileServiceClient,
        user_id: Optional[Union[int, str]] = None,
        validation_delay: Optional[float] = None,
        autosave_delay: Optional[float] = None,
        lookup_timeout: Optional[float] = None,
        matcher: Optional[ProfessionMatcher] = None,
    ):
        self.identifier = identifier
        self.user_id = user_id if user_id not in ("", "0", 0) else None
        self.profile_client = profile_client
        self.form = empty_form()
        self.validation = ValidationStateStore(delay=validation_delay)
        self.autosave = AutosaveEngine(store, snapshot_key(identifier), lambda: self.form, delay=autosave_delay)
        self.enrichment = AddressEnrichmentAdapter(
            postal_client,
            self.form,
            self.validation,
            timeout=lookup_timeout,
            on_applied=self._on_address_filled,
        )
        self.matcher = matcher or ProfessionMatcher()
        self.suggestions: list[str] = []
        self.read_only_fields: set[str] = set()
        self.is_new_user = False
        self.submit_error: Optional[str] = None
        self.closed = False
        self._email_lookups: set[str] = set()
        self._latest_email: Optional[str] = None
        self._tasks: set[asyncio.Task] = set()
        self.validation.add_listener(self._on_validated)

    @classmethod
    async def open(
        cls,
        identifier: str,
        store: SnapshotStore,
        postal_client: PostalLookupClient,
        profile_client: ProfileServiceClient,
        user_id: Optional[Union[int, str]] = None,
        **options,
    ) -> "IntakeFormService":
        """Create a form, restore any autosaved work and prefill from the profile service"""
        service = cls(identifier, store, postal_client, profile_client, user_id=user_id, **options)
        await service.hydrate()
        if service.user_id is not None:
            await service.prefill_from_profile()
        return service

    async def __aenter__(self) -> "IntakeFormService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # Field changes

    def on_field_change(self, name: str, value: FieldValue) -> bool:
        """
        Entry point for every user edit.

        Returns:
            True if the form changed, False for ignored or unchanged edits

        Raises:
            ValueError: For unknown fields or a non-boolean value on a flag field
        """
        spec = get_field(name)

        if self.closed:
            logger.warning(f"⚠️ Ignoring change to {name} on closed form {self.identifier}")
            return False

        if name in self.read_only_fields:
            logger.warning(f"⚠️ Ignoring change to read-only field {name}")
            return False

        if spec.is_flag:
            if value is not None and not isinstance(value, bool):
                raise ValueError(f"{spec.label} must be a yes/no value")
        else:
            value = "" if value is None else str(value)
            formatter = FORMATTERS.get(name)
            if formatter:
                value = formatter(value)

        if self.form.get(name) == value:
            return False

        self.form[name] = value
        self.validation.on_field_changed(name, value)
        self.autosave.mark_dirty(name)

        if name == "profession":
            self.suggestions = self.matcher.suggest(value)
        elif name == POSTAL_CODE_FIELD:
            self.enrichment.maybe_lookup(value)

        return True

    def _on_address_filled(self, fields: list[str]) -> None:
        for name in fields:
            self.autosave.mark_dirty(name)

    def _on_validated(self, name: str, value: FieldValue, result: ValidationResult) -> None:
        if name != "email" or not result.valid or self.user_id is not None:
            return
        email = str(value).strip().lower()
        self._latest_email = email
        if email in self._email_lookups:
            return
        self._email_lookups.add(email)
        task = asyncio.get_running_loop().create_task(self.prefill_from_profile(email=email))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # Restore / prefill

    async def hydrate(self) -> bool:
        """Restore the last autosaved snapshot, if any"""
        snapshot = await self.autosave.load()
        if snapshot is None:
            return False

        for name, value in snapshot.data.items():
            if name in FIELDS:
                self.form[name] = value

        for name, value in self.form.items():
            if value not in ("", None):
                self.validation.validate_now(name, value)

        logger.info(f"♻️ Restored autosaved form {self.identifier} from {snapshot.timestamp.isoformat()}")
        return True

    async def prefill_from_profile(self, email: Optional[str] = None) -> bool:
        """
        Fill identity fields from the first registration phase.

        Looks the profile up by user id, or by email when given. Fields that
        came from the profile become read-only. Never raises; a missing
        profile marks the user as new. A lookup by email is discarded once
        the email in the form has changed since it was issued.
        """
        try:
            if email is not None:
                profile = await self.profile_client.fetch_by_email(email)
            else:
                profile = await self.profile_client.fetch_by_id(self.user_id)
        except ProfileServiceError as e:
            logger.warning(f"⚠️ Profile prefill failed for {self.identifier}: {e}")
            profile = None

        if email is not None and not self._is_current_email(email):
            logger.debug(f"Discarding stale profile lookup for {email}")
            return False

        if profile is None or self.closed:
            self.is_new_user = True
            self.read_only_fields = set()
            return False

        self.is_new_user = False
        self._apply_profile(profile)
        return True

    def _is_current_email(self, email: str) -> bool:
        current = str(self.form.get("email") or "").strip().lower()
        return email == self._latest_email and email == current

    def _apply_profile(self, profile: ProfileLookup) -> None:
        values = {}
        if profile.full_name:
            values["full_name"] = profile.full_name
        if profile.email:
            values["email"] = profile.email
        if profile.cpf:
            values["cpf"] = format_cpf(profile.cpf)

        read_only = set(values)
        if profile.birth_date:
            values["birth_date"] = profile.birth_date

        if profile.user_id and self.user_id is None:
            self.user_id = profile.user_id

        for name, value in values.items():
            if self.form.get(name) != value:
                self.form[name] = value
                self.autosave.mark_dirty(name)
            self.validation.validate_now(name, value)

        self.read_only_fields = read_only

        logger.info(f"👤 Prefilled {sorted(values)} for {self.identifier}")

    # Progress

    def completion_percent(self) -> int:
        return completion_percent(self.form)

    def is_section_complete(self, section: str) -> bool:
        return is_section_complete(self.form, self.validation, section)

    def section_summary(self) -> dict[str, bool]:
        return section_summary(self.form, self.validation)

    @property
    def errors(self) -> dict[str, str]:
        return dict(self.validation.errors)

    @property
    def field_states(self) -> dict[str, FieldState]:
        return dict(self.validation.states)

    # Submission / lifecycle

    def validate_all(self) -> list[str]:
        """Validate every required field now; return the names that failed"""
        invalid = []
        for name in REQUIRED_FIELDS:
            if (
                name == POSTAL_CODE_FIELD
                and self.validation.state(name) is FieldState.INVALID
                and self.validation.error(name) in (NOT_FOUND_MESSAGE, LOOKUP_FAILED_MESSAGE)
            ):
                invalid.append(name)
                continue
            if not self.validation.validate_now(name, self.form.get(name)).valid:
                invalid.append(name)
        return invalid

    async def submit(self) -> SubmissionResult:
        """
        Validate and send the completed form.

        On success the form is cleared and its snapshot deleted. On failure
        nothing is lost: the data stays and autosave is re-armed.
        """
        self.submit_error = None

        invalid = self.validate_all()
        if invalid:
            logger.info(f"Form {self.identifier} has errors: {invalid}")
            self.submit_error = INCOMPLETE_FORM_MESSAGE
            return SubmissionResult(success=False, message=INCOMPLETE_FORM_MESSAGE)

        try:
            payload = build_profile_payload(self.form)
            await self.profile_client.submit(self.user_id, payload)
        except (ValueError, ProfileServiceError) as e:
            logger.error(f"❌ Submission failed for {self.identifier}: {e}")
            self.submit_error = str(e)
            self.autosave.rearm()
            return SubmissionResult(success=False, message=str(e))

        await self.reset()
        return SubmissionResult(success=True, message=SUBMITTED_MESSAGE)

    async def reset(self) -> None:
        """Clear the form and delete its autosaved snapshot"""
        self._cancel_tasks()
        self.enrichment.cancel()
        self.validation.clear()
        self.form.update(empty_form())
        self.suggestions = []
        self.read_only_fields = set()
        self.submit_error = None
        self._email_lookups.clear()
        self._latest_email = None
        await self.autosave.discard()

    async def close(self, flush: bool = True) -> None:
        """Release timers and in-flight work; the snapshot is kept"""
        if self.closed:
            return
        self.closed = True
        self._cancel_tasks()
        self.validation.cancel_all()
        self.enrichment.cancel()
        if flush:
            await self.autosave.flush()
        else:
            self.autosave.cancel()
            await self.autosave.wait_idle()

    def _cancel_tasks(self) -> None:
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()
