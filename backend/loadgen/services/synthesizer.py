"""
synthesizer.py

Purpose:
  Builds one fully populated telemetry payload for a given wire shape.

Value Model:
  - Every shape draws its physical quantities from the SAME raw ranges
    (`draw_raw_reading`), then applies its own scale/unit transform.
  - Faults are rare: `FAULT_PROBABILITY` of readings carry a nonzero code.

Shape Transforms:
  - NESTED / FLAT: raw values as-is.
  - RENAMED: total energy in kWh (integer), temperature in whole °C.
  - UNIT_CONVERSION: mV (= raw x 10), kW (= raw / 1000), kWh, and
    °F (= raw x 9 // 5 + 32 on the raw temperature value).

Reproducibility:
  - `synthesize` is deterministic for a seeded `random.Random` and fixed `now`.
  - `rng_for(seed, index)` gives each dispatch its own stream, so a seeded
    run yields the same payload per dispatch index whatever the thread order.
"""
from __future__ import annotations

import random
from datetime import datetime
from typing import Optional

from loadgen.models.domain import (
    FAULT_CODES,
    NO_FAULT,
    FlatPayload,
    NestedPayload,
    NestedReadings,
    Payload,
    RawReading,
    RenamedPayload,
    RenamedReadings,
    Shape,
    UnitConversionPayload,
    UnitConversionReadings,
)

FAULT_PROBABILITY = 0.1

# Raw ranges (inclusive)
DEVICE_NUM_RANGE = (1, 50)
REF_RANGE = (1, 600)
VOLTAGE_RANGE = (6100, 6299)
POWER_RANGE = (147000, 147499)
FREQUENCY_RANGE = (700, 749)
TODAY_E_RANGE = (0, 999)
TOTAL_E_RANGE = (500000, 509999)
TEMPERATURE_RANGE = (645, 654)

# Shared source for unseeded runs. Random's draw methods are safe to call
# from many threads under the GIL.
_PROCESS_RNG = random.Random()


def rng_for(seed: Optional[int], index: int) -> random.Random:
    if seed is None:
        return _PROCESS_RNG
    return random.Random(f"{seed}:{index}")


def random_fault(rng: random.Random) -> int:
    if rng.random() < FAULT_PROBABILITY:
        return rng.choice(FAULT_CODES)
    return NO_FAULT


def draw_raw_reading(rng: random.Random) -> RawReading:
    return RawReading(
        device_num=rng.randint(*DEVICE_NUM_RANGE),
        device_ref=rng.randint(*REF_RANGE),
        serial_ref=rng.randint(*REF_RANGE),
        voltage=rng.randint(*VOLTAGE_RANGE),
        power=rng.randint(*POWER_RANGE),
        frequency=rng.randint(*FREQUENCY_RANGE),
        today_e=rng.randint(*TODAY_E_RANGE),
        total_e=rng.randint(*TOTAL_E_RANGE),
        temperature=rng.randint(*TEMPERATURE_RANGE),
        fault_code=random_fault(rng),
    )


# ============================================================
# SHAPE TRANSFORMS
# ============================================================

def to_millivolts(voltage: int) -> int:
    return voltage * 10


def to_kilo(value: int) -> float:
    return value / 1000


def to_fahrenheit(temperature: int) -> int:
    return temperature * 9 // 5 + 32


def build_nested(raw: RawReading, now: datetime) -> NestedPayload:
    return NestedPayload(
        device_name=f"ESIN{raw.device_num}",
        device_id=f"ESDL{raw.device_ref}",
        date=now.strftime("%d/%m/%Y"),
        time=now.strftime("%H:%M:%S"),
        data=NestedReadings(
            serial_no=str(raw.serial_ref),
            s1v=raw.voltage,
            total_output_power=raw.power,
            f=raw.frequency,
            today_e=raw.today_e,
            total_e=raw.total_e,
            inv_temp=raw.temperature,
            fault_code=raw.fault_code,
        ),
    )


def build_renamed(raw: RawReading) -> RenamedPayload:
    return RenamedPayload(
        device_name=f"INV_B_{raw.device_num}",
        device_id=f"TYPE_B_{raw.device_ref}",
        data=RenamedReadings(
            serial_no=f"SN_{raw.serial_ref}",
            voltage_input=raw.voltage,
            power_watts=raw.power,
            freq_hz=raw.frequency,
            energy_today_wh=raw.today_e,
            energy_total_kwh=raw.total_e // 1000,
            temp_celsius=raw.temperature // 10,
            error_code=raw.fault_code,
        ),
    )


def build_flat(raw: RawReading) -> FlatPayload:
    return FlatPayload(
        device_name=f"FLAT_{raw.device_num}",
        device_id=f"FL_{raw.device_ref}",
        serial_no=f"FLAT_SN_{raw.serial_ref}",
        V=raw.voltage,
        P=raw.power,
        Hz=raw.frequency,
        E_today=raw.today_e,
        E_total=raw.total_e,
        temp=raw.temperature,
        status=raw.fault_code,
    )


def build_unit_conversion(raw: RawReading) -> UnitConversionPayload:
    return UnitConversionPayload(
        device_name=f"CONV_{raw.device_num}",
        readings=UnitConversionReadings(
            voltage_mv=to_millivolts(raw.voltage),
            power_kw=to_kilo(raw.power),
            frequency_hz=raw.frequency,
            today_kwh=to_kilo(raw.today_e),
            total_kwh=to_kilo(raw.total_e),
            temp_f=to_fahrenheit(raw.temperature),
            fault=raw.fault_code,
        ),
    )


def shape_payload(shape: Shape, raw: RawReading, now: Optional[datetime] = None) -> Payload:
    shape = Shape(shape)
    if shape is Shape.NESTED:
        return build_nested(raw, now or datetime.now())
    if shape is Shape.RENAMED:
        return build_renamed(raw)
    if shape is Shape.FLAT:
        return build_flat(raw)
    return build_unit_conversion(raw)


def synthesize(shape: Shape, rng: random.Random, now: Optional[datetime] = None) -> Payload:
    return shape_payload(shape, draw_raw_reading(rng), now)
