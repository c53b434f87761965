"""State of the dog mode logic and the timer that watches air conditioning."""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from typing import Optional

from chariott_apps.api import Chariott
from chariott_apps.value import Value

# Namespaces
VDT_NAMESPACE = "sdv.vdt"
KEY_VALUE_STORE_NAMESPACE = "sdv.kvs"

# Dog mode boundary conditions
LOW_BATTERY_LEVEL = 19
MIN_TEMPERATURE = 20
MAX_TEMPERATURE = 26

# Method names
ACTIVATE_AIR_CONDITIONING_ID = "Vehicle.Cabin.HVAC.IsAirConditioningActive"
SEND_NOTIFICATION_ID = "send_notification"
SET_UI_MESSAGE_ID = "set_ui_message"

# Event identifiers
DOG_MODE_STATUS_ID = "Feature.DogMode.Status"
CABIN_TEMPERATURE_ID = "Vehicle.Cabin.HVAC.AmbientAirTemperature"
AIR_CONDITIONING_STATE_ID = "Vehicle.Cabin.HVAC.IsAirConditioningActive"
BATTERY_LEVEL_ID = "Vehicle.OBD.HybridBatteryRemaining"

# Durations, in seconds of the monotonic clock
FUNCTION_INVOCATION_THROTTLING_DURATION = 5.0
AIR_CONDITIONING_ACTIVATION_TIMEOUT = 10.0
TIMEOUT_EVALUATION_INTERVAL = 2.0

AIR_CONDITIONING_FAILURE_MESSAGE = (
    "Error while activating air conditioning, please return to the car immediately."
)


def _throttling_expired_instant() -> float:
    return time.monotonic() - FUNCTION_INVOCATION_THROTTLING_DURATION


@dataclass(frozen=True)
class DogModeState:
    """A snapshot of everything the dog mode logic decides on.

    Instants are values of :func:`time.monotonic`.
    """

    temperature: int = 25
    dogmode_status: bool = False
    battery_level: int = 100
    air_conditioning_active: bool = False
    air_conditioning_activation_time: Optional[float] = None
    last_air_conditioning_invocation_time: float = field(
        default_factory=_throttling_expired_instant
    )
    write_dog_mode_status: bool = False
    send_notification_disabled: bool = False
    set_ui_message_disabled: bool = False


async def on_dog_mode_timer(
    state: DogModeState, chariott: Chariott
) -> Optional[DogModeState]:
    """Check a pending air conditioning activation.

    Returns a new state with the activation time cleared once air
    conditioning is reported active, or once the activation timed out, in
    which case the owner is notified. Returns ``None`` when nothing changed.
    """
    activation_time = state.air_conditioning_activation_time
    if activation_time is None:
        return None

    if state.air_conditioning_active:
        return replace(state, air_conditioning_activation_time=None)

    if time.monotonic() > activation_time + AIR_CONDITIONING_ACTIVATION_TIMEOUT:
        await chariott.invoke(
            VDT_NAMESPACE,
            SEND_NOTIFICATION_ID,
            [Value.string(AIR_CONDITIONING_FAILURE_MESSAGE)],
        )
        return replace(state, air_conditioning_activation_time=None)

    return None