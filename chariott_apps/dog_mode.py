"""Dog mode business logic: dependency checks and reactions to state changes."""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Iterable, Mapping, Optional, Tuple, Union

from chariott_apps.api import Chariott, ChariottError
from chariott_apps.dog_mode_state import (
    ACTIVATE_AIR_CONDITIONING_ID,
    AIR_CONDITIONING_STATE_ID,
    BATTERY_LEVEL_ID,
    CABIN_TEMPERATURE_ID,
    DOG_MODE_STATUS_ID,
    FUNCTION_INVOCATION_THROTTLING_DURATION,
    KEY_VALUE_STORE_NAMESPACE,
    LOW_BATTERY_LEVEL,
    MAX_TEMPERATURE,
    MIN_TEMPERATURE,
    SEND_NOTIFICATION_ID,
    SET_UI_MESSAGE_ID,
    VDT_NAMESPACE,
    DogModeState,
)
from chariott_apps.value import Value

logger = logging.getLogger(__name__)

MEMBER_TYPE = "member_type"
TYPE = "type"
MEMBER_TYPE_COMMAND = "command"
MEMBER_TYPE_PROPERTY = "property"

COOLING_NOTIFICATION = "The car is now being cooled."
COOLING_UI_MESSAGE = "The car is cooled, no need to worry."
LOW_BATTERY_NOTIFICATION = "The battery is low, please return to the car."
LOW_BATTERY_UI_MESSAGE = "The battery is low, the animal is in danger."

_REQUIRED_DEPENDENCIES = (
    (CABIN_TEMPERATURE_ID, MEMBER_TYPE_PROPERTY, "int32"),
    (AIR_CONDITIONING_STATE_ID, MEMBER_TYPE_PROPERTY, "bool"),
    (BATTERY_LEVEL_ID, MEMBER_TYPE_PROPERTY, "int32"),
    (ACTIVATE_AIR_CONDITIONING_ID, MEMBER_TYPE_COMMAND, "IAcmeAirconControl"),
)

_OPTIONAL_DEPENDENCIES = (
    (SEND_NOTIFICATION_ID, "ISendNotification", "send_notification_disabled"),
    (SET_UI_MESSAGE_ID, "ISetUiMessage", "set_ui_message_disabled"),
)

_LOGGED_FIELDS = (
    ("Dog mode", "dogmode_status"),
    ("Cabin Temperature", "temperature"),
    ("Air conditioning", "air_conditioning_active"),
    ("Battery level", "battery_level"),
)

ExpectedProperties = Union[Mapping[str, Value], Iterable[Tuple[str, Value]]]


class DependencyError(ChariottError):
    """A vehicle dependency is missing or does not have the expected shape."""


def _check_member(member, expected: list[Tuple[str, Value]]) -> None:
    if not expected:
        raise DependencyError("Expected properties array was empty.")
    for key, expected_value in expected:
        actual = member.get(key)
        if actual is None:
            raise DependencyError(f"Member does not specify {key!r}.")
        if actual != expected_value:
            raise DependencyError(
                f"Member is of {key} '{actual!r}' instead of '{expected_value!r}'."
            )


async def inspect_dependency(
    chariott: Chariott, path: str, expected_properties: ExpectedProperties
) -> None:
    """Ensure some member at ``path`` carries all the expected properties.

    Raises :class:`DependencyError` when no member matches; the error is the
    one found for the last member inspected.
    """
    pairs = (
        list(expected_properties.items())
        if isinstance(expected_properties, Mapping)
        else list(expected_properties)
    )
    members = await chariott.inspect(VDT_NAMESPACE, path)
    error: DependencyError = DependencyError(
        "Could not find a single member within the specified path."
    )
    for member in members:
        try:
            _check_member(member, pairs)
        except DependencyError as member_error:
            error = member_error
        else:
            return
    raise error


def _expected(member_type: str, type_name: str) -> list[Tuple[str, Value]]:
    return [(MEMBER_TYPE, Value.string(member_type)), (TYPE, Value.string(type_name))]


async def check_dependencies(chariott: Chariott, state: DogModeState) -> DogModeState:
    """Verify the vehicle offers what dog mode needs.

    Required members raise when missing; missing optional commands are
    disabled in the returned state. Raises :class:`DependencyError` when
    neither notification nor UI message is available.
    """
    for path, member_type, type_name in _REQUIRED_DEPENDENCIES:
        await inspect_dependency(chariott, path, _expected(member_type, type_name))

    disabled: dict[str, bool] = {}
    for path, type_name, flag in _OPTIONAL_DEPENDENCIES:
        try:
            await inspect_dependency(
                chariott, path, _expected(MEMBER_TYPE_COMMAND, type_name)
            )
        except ChariottError as error:
            logger.warning(
                "Error when inspecting for optional dependency %s: '%r'.", path, error
            )
            disabled[flag] = True

    state = replace(state, **disabled)
    if state.send_notification_disabled and state.set_ui_message_disabled:
        raise DependencyError(
            f"Neither {SEND_NOTIFICATION_ID} nor {SET_UI_MESSAGE_ID} are available"
        )
    return state


async def _activate_air_conditioning(chariott: Chariott, value: bool) -> None:
    await chariott.invoke(VDT_NAMESPACE, ACTIVATE_AIR_CONDITIONING_ID, [Value.boolean(value)])


async def _activate_air_conditioning_with_throttling(
    value: bool, state: DogModeState, chariott: Chariott
) -> Optional[float]:
    now = time.monotonic()
    if now > state.last_air_conditioning_invocation_time + FUNCTION_INVOCATION_THROTTLING_DURATION:
        await _activate_air_conditioning(chariott, value)
        return now
    return None


async def _send_notification(chariott: Chariott, message: str, state: DogModeState) -> None:
    if not state.send_notification_disabled:
        await chariott.invoke(VDT_NAMESPACE, SEND_NOTIFICATION_ID, [Value.string(message)])


async def _set_ui_message(chariott: Chariott, message: str, state: DogModeState) -> None:
    if not state.set_ui_message_disabled:
        await chariott.invoke(VDT_NAMESPACE, SET_UI_MESSAGE_ID, [Value.string(message)])


async def run_dog_mode(
    state: DogModeState, previous_state: DogModeState, chariott: Chariott
) -> Optional[DogModeState]:
    """React to the change from ``previous_state`` to ``state``.

    Returns an updated state when air conditioning was switched, else ``None``.
    """
    if state == previous_state:
        return None

    for label, name in _LOGGED_FIELDS:
        current = getattr(state, name)
        if current != getattr(previous_state, name):
            logger.info("%s: %s", label, current)

    if state.write_dog_mode_status and state.dogmode_status != previous_state.dogmode_status:
        await chariott.write(
            KEY_VALUE_STORE_NAMESPACE, DOG_MODE_STATUS_ID, Value.boolean(state.dogmode_status)
        )

    if not state.dogmode_status:
        if previous_state.dogmode_status:
            await _activate_air_conditioning(chariott, False)
        return None

    output_state: Optional[DogModeState] = None

    if MIN_TEMPERATURE >= state.temperature and state.air_conditioning_active:
        invoked_at = await _activate_air_conditioning_with_throttling(False, state, chariott)
        if invoked_at is not None:
            output_state = replace(state, last_air_conditioning_invocation_time=invoked_at)

    if state.temperature > MAX_TEMPERATURE and not state.air_conditioning_active:
        invoked_at = await _activate_air_conditioning_with_throttling(True, state, chariott)
        if invoked_at is not None:
            output_state = replace(
                state,
                last_air_conditioning_invocation_time=invoked_at,
                air_conditioning_activation_time=invoked_at,
            )

    if state.air_conditioning_active and not previous_state.air_conditioning_active:
        await _send_notification(chariott, COOLING_NOTIFICATION, state)
        await _set_ui_message(chariott, COOLING_UI_MESSAGE, state)

    if previous_state.battery_level > LOW_BATTERY_LEVEL >= state.battery_level:
        await _send_notification(chariott, LOW_BATTERY_NOTIFICATION, state)
        await _set_ui_message(chariott, LOW_BATTERY_UI_MESSAGE, state)

    return output_state