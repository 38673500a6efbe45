from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Annotated, ClassVar, Dict, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


# ============================================================
# 0) ENUMS
# ============================================================

class Shape(IntEnum):
    """Wire shapes for the same inverter reading. Value = round-robin slot."""
    NESTED = 0
    RENAMED = 1
    FLAT = 2
    UNIT_CONVERSION = 3

    @property
    def label(self) -> str:
        return f"Format {int(self) + 1}"


SHAPE_COUNT = len(Shape)

# 0 = healthy, 1..5 = enumerated inverter faults
NO_FAULT = 0
FAULT_CODES = (1, 2, 3, 4, 5)


# ============================================================
# 1) RAW READING (shared physical quantities)
# ============================================================

@dataclass(frozen=True)
class RawReading:
    """
    One inverter snapshot in native logger units, before any shape transform.
      voltage:      native ticks (x10 -> mV)
      power:        W
      frequency:    native ticks
      today_e:      Wh
      total_e:      Wh
      temperature:  °C x 10
    """
    device_num: int
    device_ref: int
    serial_ref: int
    voltage: int
    power: int
    frequency: int
    today_e: int
    total_e: int
    temperature: int
    fault_code: int


# ============================================================
# 2) PAYLOAD SHAPES (wire contract: names + nesting are fixed)
# ============================================================

class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class NestedReadings(_Frozen):
    serial_no: str
    s1v: int
    total_output_power: int
    f: int
    today_e: int
    total_e: int
    inv_temp: int
    fault_code: int


class NestedPayload(_Frozen):
    """Format 1: the logger's native format, readings nested under `data`."""
    shape: ClassVar[Shape] = Shape.NESTED

    device_type: Literal["current_format"] = "current_format"
    device_name: str
    device_id: str
    date: str
    time: str
    signal_strength: str = "-1"
    data: NestedReadings


class RenamedReadings(_Frozen):
    serial_no: str
    voltage_input: int
    power_watts: int
    freq_hz: int
    energy_today_wh: int
    energy_total_kwh: int
    temp_celsius: int
    error_code: int


class RenamedPayload(_Frozen):
    """Format 2: nested, different field names, coarser total energy/temp."""
    shape: ClassVar[Shape] = Shape.RENAMED

    device_type: Literal["format_2_inverter"] = "format_2_inverter"
    device_name: str
    device_id: str
    data: RenamedReadings


class FlatPayload(_Frozen):
    """Format 3: flat record with short physics names."""
    shape: ClassVar[Shape] = Shape.FLAT

    device_type: Literal["flat_format_device"] = "flat_format_device"
    device_name: str
    device_id: str
    serial_no: str
    v: int = Field(alias="V")
    p: int = Field(alias="P")
    hz: int = Field(alias="Hz")
    e_today: int = Field(alias="E_today")
    e_total: int = Field(alias="E_total")
    temp: int
    status: int


class UnitConversionReadings(_Frozen):
    voltage_mv: int
    power_kw: float
    frequency_hz: int
    today_kwh: float
    total_kwh: float
    temp_f: int
    fault: int


class UnitConversionPayload(_Frozen):
    """Format 4: units in field names (mV, kW, kWh, °F), nested under `readings`."""
    shape: ClassVar[Shape] = Shape.UNIT_CONVERSION

    device_type: Literal["unit_conversion_device"] = "unit_conversion_device"
    device_name: str
    readings: UnitConversionReadings


Payload = Annotated[
    Union[NestedPayload, RenamedPayload, FlatPayload, UnitConversionPayload],
    Field(discriminator="device_type"),
]

PAYLOAD_ADAPTER: TypeAdapter = TypeAdapter(Payload)


# ============================================================
# 3) REPORTING
# ============================================================

class RunReport(BaseModel):
    endpoint: str
    rate: int
    duration_s: float

    sent: int
    failed: int
    attempted: int
    elapsed_s: float
    achieved_rate: float

    ticks: int
    launched: int
    overruns: int

    # keyed by Shape.label
    per_shape: Dict[str, int]
    failure_reasons: Dict[str, int]


class HealthResponse(BaseModel):
    status: str
    ts: str
    uptime_s: float
    accepted: int
    rejected: int


class SinkStats(BaseModel):
    accepted: int
    rejected: int
    forced_errors: int
    per_shape: Dict[str, int]
