"""
Validation state store

Owns the per-field validation state and error messages of one form instance.
Validation runs are debounced per field: a change schedules a run after a
quiet delay and a newer change to the same field replaces the pending run.
"""

import asyncio
import logging
from typing import Callable, Optional

from ... import config
from ...shared.validators import is_blank
from .fields import FIELDS, get_field, validate_field
from .schemas import FieldState, FieldValue, ValidationResult

logger = logging.getLogger(__name__)

Validator = Callable[[str, FieldValue], ValidationResult]
Listener = Callable[[str, FieldValue, ValidationResult], None]


class ValidationStateStore:
    """Per-field validation state with debounced evaluation"""

    def __init__(self, validator: Validator = validate_field, delay: Optional[float] = None):
        self.validator = validator
        self.delay = config.VALIDATION_DEBOUNCE_SECONDS if delay is None else delay
        self.states: dict[str, FieldState] = {}
        self.errors: dict[str, str] = {}
        self._pending: dict[str, asyncio.TimerHandle] = {}
        self._listeners: list[Listener] = []
        self.clear()

    def add_listener(self, listener: Listener) -> None:
        """Call ``listener(name, value, result)`` after every validation run"""
        self._listeners.append(listener)

    def on_field_changed(self, name: str, value: FieldValue) -> None:
        """Schedule validation of ``value``, replacing any pending run for the field"""
        get_field(name)
        self._cancel(name)
        loop = asyncio.get_running_loop()
        self._pending[name] = loop.call_later(self.delay, self._run, name, value)

    def validate_now(self, name: str, value: FieldValue) -> ValidationResult:
        """
        Validate immediately, cancelling any pending run for the field.

        Unlike debounced runs, an empty required field is recorded as INVALID.
        """
        self._cancel(name)
        result = self.validator(name, value)
        self._record(name, result)
        self._notify(name, value, result)
        return result

    def apply(self, name: str, valid: bool, message: str = "") -> None:
        """Record a verdict reached outside the validator (e.g. an address lookup)"""
        get_field(name)
        self._cancel(name)
        self._record(name, ValidationResult(valid=valid, message=message if not valid else ""))

    def reset_field(self, name: str) -> None:
        self._cancel(name)
        self.states[name] = FieldState.DEFAULT
        self.errors[name] = ""

    def state(self, name: str) -> FieldState:
        return self.states[name]

    def error(self, name: str) -> str:
        return self.errors[name]

    def is_valid(self, name: str) -> bool:
        return self.states[name] is FieldState.VALID

    def is_pending(self, name: str) -> bool:
        return name in self._pending

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def cancel_all(self) -> None:
        for handle in self._pending.values():
            handle.cancel()
        self._pending.clear()

    def clear(self) -> None:
        self.cancel_all()
        self.states = {name: FieldState.DEFAULT for name in FIELDS}
        self.errors = {name: "" for name in FIELDS}

    def _cancel(self, name: str) -> None:
        handle = self._pending.pop(name, None)
        if handle is not None:
            handle.cancel()

    def _run(self, name: str, value: FieldValue) -> None:
        self._pending.pop(name, None)

        if is_blank(value):
            # Emptied fields go back to DEFAULT until a submission flags them
            self.reset_field(name)
            self._notify(name, value, ValidationResult(valid=False, message=""))
            return

        result = self.validator(name, value)
        self._record(name, result)
        logger.debug(f"Validated {name}: {self.states[name].value}")
        self._notify(name, value, result)

    def _record(self, name: str, result: ValidationResult) -> None:
        if result.valid:
            self.states[name] = FieldState.VALID
            self.errors[name] = ""
        else:
            self.states[name] = FieldState.INVALID
            self.errors[name] = result.message or "Invalid value"

    def _notify(self, name: str, value: FieldValue, result: ValidationResult) -> None:
        for listener in self._listeners:
            try:
                listener(name, value, result)
            except Exception as e:
                logger.error(f"❌ Validation listener failed for {name}: {e}")
