# chariott_apps

Building blocks for applications that talk to a Chariott intent broker,
together with the dog mode logic built on top of them. The package has no
third-party dependencies.

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `chariott_apps.keyvalue` – `InMemoryKeyValueStore`, a dictionary-backed
  store whose optional `Observer` has `on_set(key, value)` called on every
  `set`, before the value is stored and also when the value is unchanged.
  `get` returns `None` for a missing key. The store is not thread safe.
- `chariott_apps.value` – `Value`, a frozen value tagged with a `ValueKind`
  (null, bool, int32, int64, float32, float64, string, any, blob). Build one
  with `Value.string`, `Value.int32`, `Value.int64` (range-checked),
  `Value.float32` (narrowed to single precision), `Value.float64`,
  `Value.boolean`, `Value.new_any(type_url, bytes)` or
  `Value.new_blob(media_type, bytes)`; `Value.TRUE`, `Value.FALSE` and
  `Value.NULL` are ready-made. Read it back with `to_i32`, `to_i64`,
  `to_bool`, `as_str` (raising `InvalidType` on a wrong kind) or
  `into_string`, `into_any`, `into_blob` (raising `InvalidValueType`, which
  keeps the value on its `value` attribute).
- `chariott_apps.inspection` – `Entry`, a path with named values. Items may
  be given as `Value`s or as plain `str`, `bool`, `int` (int32 when it fits,
  else int64) and `float` values. `entry.get(key)` and `entry.path()` read it.
- `chariott_apps.detection` – `DetectedObject` (an object name, a confidence
  and an optional parent, built with `DetectedObject.from_dict`), whose
  `ascendants_and_self()` yields the object and then each ancestor;
  `parse_detection_response` takes a detection service response (JSON text
  or decoded) with an `objects` list and flattens it into `DetectionObject`s,
  every object followed by its ancestors. Malformed input raises
  `ValueError`.
- `chariott_apps.api` – the abstract `Chariott` client. A subclass implements
  `fulfill(namespace, intent)`; on top of it the class provides `invoke`,
  `subscribe`, `discover`, `inspect`, `write` and `read`, raising
  `ChariottError` when no fulfillment or the wrong kind of fulfillment comes
  back. Intents and fulfillments are small dataclasses in the same module;
  `Event` and `Service` are the event and discovery records.
- `chariott_apps.dog_mode_state` – `DogModeState`, a frozen snapshot of
  temperature, battery level, air conditioning and dog mode status (instants
  are `time.monotonic()` values), the namespace, identifier and threshold
  constants, and `on_dog_mode_timer`, which clears a pending air
  conditioning activation once it is reported active, or after a 10 second
  timeout, notifying the owner in that case.
- `chariott_apps.dog_mode` – `inspect_dependency` and `check_dependencies`,
  which inspect the vehicle namespace for the required members and disable
  the optional notification and UI message commands when missing (raising
  `DependencyError` if both are); and `run_dog_mode`, which reacts to a
  state change: it writes the dog mode status when asked to, switches air
  conditioning on above 26 degrees and off at or below 20 (at most once
  every 5 seconds), and sends notifications and UI messages when cooling
  starts or the battery falls to 19 or below.

## Example

```python
import asyncio

from chariott_apps.api import Chariott, InvokeFulfillment, InvokeIntent
from chariott_apps.dog_mode import run_dog_mode
from chariott_apps.dog_mode_state import DogModeState


class RecordingChariott(Chariott):
    def __init__(self):
        self.intents = []

    async def fulfill(self, namespace, intent):
        self.intents.append((namespace, intent))
        if isinstance(intent, InvokeIntent):
            return InvokeFulfillment(return_value=None or intent.args[0])
        return None


async def main():
    chariott = RecordingChariott()
    previous = DogModeState(dogmode_status=True, temperature=26)
    current = DogModeState(dogmode_status=True, temperature=27)
    new_state = await run_dog_mode(current, previous, chariott)
    print(chariott.intents)
    print(new_state.air_conditioning_activation_time is not None)


asyncio.run(main())
```

## What this package does not do

There is no network transport: `Chariott` is an interface whose `fulfill`
you implement yourself, so the package neither connects to a broker nor
opens event streams. It runs no provider server, registers nothing with a
broker, and installs no command; the dog mode functions make decisions for
one state change or timer tick at a time, and driving them from incoming
events is left to the caller.