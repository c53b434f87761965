import time
from dataclasses import replace

import pytest

from chariott_apps.api import (
    Chariott,
    InspectEntry,
    InspectFulfillment,
    InspectIntent,
    InvokeFulfillment,
    InvokeIntent,
    WriteFulfillment,
    WriteIntent,
)
from chariott_apps.dog_mode import (
    DependencyError,
    check_dependencies,
    inspect_dependency,
    run_dog_mode,
)
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


class CarControllerMock(Chariott):
    def __init__(self, members=None):
        self.ui_message = None
        self.notification = None
        self.air_conditioning_state = None
        self.writes = []
        self.members = members or {}

    def recorded(self):
        return (self.ui_message, self.notification, self.air_conditioning_state)

    async def fulfill(self, namespace, intent):
        if isinstance(intent, InvokeIntent):
            arg = intent.args[0]
            if namespace == VDT_NAMESPACE:
                if intent.command == SET_UI_MESSAGE_ID:
                    self.ui_message = arg.into_string()
                elif intent.command == SEND_NOTIFICATION_ID:
                    self.notification = arg.into_string()
                elif intent.command == ACTIVATE_AIR_CONDITIONING_ID:
                    self.air_conditioning_state = arg.to_bool()
            return InvokeFulfillment(Value.TRUE)
        if isinstance(intent, WriteIntent):
            self.writes.append((namespace, intent.key, intent.value))
            return WriteFulfillment()
        if isinstance(intent, InspectIntent):
            return InspectFulfillment(entries=tuple(self.members.get(intent.query, ())))
        raise AssertionError(f"unexpected intent {intent!r}")


def member(path, member_type, type_name):
    return InspectEntry(
        path,
        {"member_type": Value.string(member_type), "type": Value.string(type_name)},
    )


def full_vehicle():
    return {
        CABIN_TEMPERATURE_ID: [member(CABIN_TEMPERATURE_ID, "property", "int32")],
        BATTERY_LEVEL_ID: [member(BATTERY_LEVEL_ID, "property", "int32")],
        # The air conditioning state and its activation command share a path.
        AIR_CONDITIONING_STATE_ID: [
            member(AIR_CONDITIONING_STATE_ID, "property", "bool"),
            member(ACTIVATE_AIR_CONDITIONING_ID, "command", "IAcmeAirconControl"),
        ],
        SEND_NOTIFICATION_ID: [member(SEND_NOTIFICATION_ID, "command", "ISendNotification")],
        SET_UI_MESSAGE_ID: [member(SET_UI_MESSAGE_ID, "command", "ISetUiMessage")],
    }


def assert_instant(expected, actual, margin):
    assert actual < expected + margin
    assert expected - margin < actual


@pytest.mark.asyncio
async def test_dog_mode_activation_has_no_effect_when_no_conditions_are_met():
    car = CarControllerMock()
    original = DogModeState()
    state = replace(original, dogmode_status=True)

    result = await run_dog_mode(state, original, car)

    assert result is None
    assert car.recorded() == (None, None, None)


@pytest.mark.asyncio
async def test_air_con_is_turned_on_when_temperature_exceeds_max_threshold():
    car = CarControllerMock()
    original = DogModeState(temperature=MAX_TEMPERATURE, battery_level=100, dogmode_status=True)
    state = replace(original, temperature=MAX_TEMPERATURE + 1)

    await run_dog_mode(state, original, car)

    assert car.recorded() == (None, None, True)


@pytest.mark.asyncio
async def test_user_is_notified_when_air_con_is_reported_to_be_on():
    car = CarControllerMock()
    original = DogModeState(
        temperature=MAX_TEMPERATURE + 1, battery_level=100, dogmode_status=True
    )
    state = replace(original, air_conditioning_active=True)

    await run_dog_mode(state, original, car)

    assert car.recorded() == (
        "The car is cooled, no need to worry.",
        "The car is now being cooled.",
        None,
    )


@pytest.mark.asyncio
async def test_user_is_notified_when_battery_is_low():
    car = CarControllerMock()
    original = DogModeState(
        dogmode_status=True,
        temperature=MAX_TEMPERATURE + 1,
        battery_level=LOW_BATTERY_LEVEL + 1,
    )
    state = replace(original, battery_level=LOW_BATTERY_LEVEL)

    await run_dog_mode(state, original, car)

    assert car.recorded() == (
        "The battery is low, the animal is in danger.",
        "The battery is low, please return to the car.",
        True,
    )


@pytest.mark.asyncio
async def test_air_con_is_turned_off_when_temperature_below_min_threshold():
    car = CarControllerMock()
    original = DogModeState(
        dogmode_status=True, temperature=MIN_TEMPERATURE, air_conditioning_active=True
    )
    state = replace(original, temperature=MIN_TEMPERATURE - 1)

    await run_dog_mode(state, original, car)

    assert car.recorded() == (None, None, False)


@pytest.mark.asyncio
async def test_air_conditioning_activation_is_set_when_air_conditioning_turned_on():
    car = CarControllerMock()
    original = DogModeState(dogmode_status=True, air_conditioning_active=False)
    state = replace(original, temperature=MAX_TEMPERATURE + 1)

    result = await run_dog_mode(state, original, car)

    assert result is not None
    assert result.air_conditioning_activation_time is not None
    assert_instant(time.monotonic(), result.air_conditioning_activation_time, 5.0)


@pytest.mark.asyncio
async def test_air_conditioning_should_throttle_function_invocations():
    car = CarControllerMock()
    state = DogModeState(
        temperature=40,
        dogmode_status=True,
        air_conditioning_active=False,
        last_air_conditioning_invocation_time=time.monotonic(),
    )

    result = await run_dog_mode(state, DogModeState(), car)

    assert result is None
    assert car.air_conditioning_state is None


@pytest.mark.asyncio
async def test_air_conditioning_should_invoke_function_after_throttling_expired():
    car = CarControllerMock()
    previous = DogModeState(temperature=40, dogmode_status=True)
    state = DogModeState(
        temperature=15,
        dogmode_status=True,
        air_conditioning_active=True,
        last_air_conditioning_invocation_time=time.monotonic()
        - FUNCTION_INVOCATION_THROTTLING_DURATION,
    )

    result = await run_dog_mode(state, previous, car)

    assert result is not None
    assert_instant(time.monotonic(), result.last_air_conditioning_invocation_time, 3.0)
    assert result.air_conditioning_active is True
    assert car.air_conditioning_state is False


@pytest.mark.asyncio
async def test_unchanged_state_does_nothing():
    car = CarControllerMock()
    state = DogModeState(dogmode_status=True, temperature=40)

    result = await run_dog_mode(state, state, car)

    assert result is None
    assert car.recorded() == (None, None, None)


@pytest.mark.asyncio
async def test_disabling_dog_mode_turns_air_conditioning_off():
    car = CarControllerMock()
    previous = DogModeState(dogmode_status=True, temperature=40)
    state = replace(previous, dogmode_status=False)

    result = await run_dog_mode(state, previous, car)

    assert result is None
    assert car.air_conditioning_state is False


@pytest.mark.asyncio
async def test_dog_mode_status_is_written_when_responsible():
    car = CarControllerMock()
    previous = DogModeState(write_dog_mode_status=True)
    state = replace(previous, dogmode_status=True)

    await run_dog_mode(state, previous, car)

    assert car.writes == [(KEY_VALUE_STORE_NAMESPACE, DOG_MODE_STATUS_ID, Value.TRUE)]


@pytest.mark.asyncio
async def test_disabled_notifications_are_not_sent():
    car = CarControllerMock()
    original = DogModeState(
        temperature=MAX_TEMPERATURE + 1,
        dogmode_status=True,
        send_notification_disabled=True,
    )
    state = replace(original, air_conditioning_active=True)

    await run_dog_mode(state, original, car)

    assert car.notification is None
    assert car.ui_message == "The car is cooled, no need to worry."


@pytest.mark.asyncio
async def test_inspect_dependency_accepts_matching_member():
    car = CarControllerMock(full_vehicle())

    await inspect_dependency(
        car,
        ACTIVATE_AIR_CONDITIONING_ID,
        [("member_type", Value.string("command")), ("type", Value.string("IAcmeAirconControl"))],
    )

    assert car.writes == []


@pytest.mark.asyncio
async def test_inspect_dependency_rejects_mismatching_type():
    car = CarControllerMock(full_vehicle())

    with pytest.raises(DependencyError, match="instead of"):
        await inspect_dependency(
            car,
            BATTERY_LEVEL_ID,
            {"member_type": Value.string("property"), "type": Value.string("bool")},
        )


@pytest.mark.asyncio
async def test_inspect_dependency_rejects_missing_property():
    car = CarControllerMock(full_vehicle())

    with pytest.raises(DependencyError, match="does not specify"):
        await inspect_dependency(car, BATTERY_LEVEL_ID, {"read": Value.TRUE})


@pytest.mark.asyncio
async def test_inspect_dependency_without_members_fails():
    car = CarControllerMock({})

    with pytest.raises(DependencyError, match="Could not find a single member"):
        await inspect_dependency(car, BATTERY_LEVEL_ID, {"type": Value.string("int32")})


@pytest.mark.asyncio
async def test_inspect_dependency_with_no_expectations_fails():
    car = CarControllerMock(full_vehicle())

    with pytest.raises(DependencyError, match="Expected properties array was empty."):
        await inspect_dependency(car, BATTERY_LEVEL_ID, [])


@pytest.mark.asyncio
async def test_check_dependencies_on_full_vehicle_keeps_everything_enabled():
    car = CarControllerMock(full_vehicle())

    state = await check_dependencies(car, DogModeState())

    assert state.send_notification_disabled is False
    assert state.set_ui_message_disabled is False


@pytest.mark.asyncio
async def test_check_dependencies_disables_missing_optional_command():
    members = full_vehicle()
    del members[SET_UI_MESSAGE_ID]
    car = CarControllerMock(members)

    state = await check_dependencies(car, DogModeState())

    assert state.set_ui_message_disabled is True
    assert state.send_notification_disabled is False


@pytest.mark.asyncio
async def test_check_dependencies_fails_without_any_notification_channel():
    members = full_vehicle()
    del members[SET_UI_MESSAGE_ID]
    del members[SEND_NOTIFICATION_ID]
    car = CarControllerMock(members)

    with pytest.raises(DependencyError, match="Neither"):
        await check_dependencies(car, DogModeState())


@pytest.mark.asyncio
async def test_check_dependencies_fails_on_missing_required_member():
    members = full_vehicle()
    del members[CABIN_TEMPERATURE_ID]
    car = CarControllerMock(members)

    with pytest.raises(DependencyError):
        await check_dependencies(car, DogModeState())