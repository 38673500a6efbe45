import json
import random
from datetime import datetime

import pytest

from loadgen.models.domain import (
    FAULT_CODES,
    PAYLOAD_ADAPTER,
    FlatPayload,
    NestedPayload,
    RawReading,
    RenamedPayload,
    Shape,
    UnitConversionPayload,
)
from loadgen.services.sender import serialize
from loadgen.services.synthesizer import (
    FAULT_PROBABILITY,
    draw_raw_reading,
    random_fault,
    rng_for,
    shape_payload,
    synthesize,
)

NOW = datetime(2025, 3, 7, 14, 5, 9)

RAW = RawReading(
    device_num=12,
    device_ref=345,
    serial_ref=77,
    voltage=6150,
    power=147250,
    frequency=720,
    today_e=432,
    total_e=503210,
    temperature=650,
    fault_code=3,
)


# ============================================================
# WIRE SHAPES (field names + nesting are a contract)
# ============================================================

@pytest.mark.parametrize("shape, top_keys, nested_key, nested_keys", [
    (
        Shape.NESTED,
        {"device_type", "device_name", "device_id", "date", "time", "signal_strength", "data"},
        "data",
        {"serial_no", "s1v", "total_output_power", "f", "today_e", "total_e", "inv_temp", "fault_code"},
    ),
    (
        Shape.RENAMED,
        {"device_type", "device_name", "device_id", "data"},
        "data",
        {"serial_no", "voltage_input", "power_watts", "freq_hz", "energy_today_wh",
         "energy_total_kwh", "temp_celsius", "error_code"},
    ),
    (
        Shape.FLAT,
        {"device_type", "device_name", "device_id", "serial_no", "V", "P", "Hz",
         "E_today", "E_total", "temp", "status"},
        None,
        None,
    ),
    (
        Shape.UNIT_CONVERSION,
        {"device_type", "device_name", "readings"},
        "readings",
        {"voltage_mv", "power_kw", "frequency_hz", "today_kwh", "total_kwh", "temp_f", "fault"},
    ),
])
def test_wire_field_names(shape, top_keys, nested_key, nested_keys):
    doc = json.loads(serialize(shape_payload(shape, RAW, NOW)))
    assert set(doc.keys()) == top_keys
    if nested_key:
        assert set(doc[nested_key].keys()) == nested_keys


def test_nested_identity_fields():
    p = shape_payload(Shape.NESTED, RAW, NOW)
    assert isinstance(p, NestedPayload)
    assert p.device_type == "current_format"
    assert p.device_name == "ESIN12"
    assert p.device_id == "ESDL345"
    assert p.date == "07/03/2025"
    assert p.time == "14:05:09"
    assert p.signal_strength == "-1"
    assert p.data.serial_no == "77"


def test_renamed_scales_total_energy_and_temperature():
    p = shape_payload(Shape.RENAMED, RAW, NOW)
    assert isinstance(p, RenamedPayload)
    assert p.device_name == "INV_B_12"
    assert p.data.serial_no == "SN_77"
    assert p.data.energy_total_kwh == 503
    assert p.data.temp_celsius == 65
    assert p.data.error_code == 3


def test_flat_carries_raw_values():
    p = shape_payload(Shape.FLAT, RAW, NOW)
    assert isinstance(p, FlatPayload)
    doc = json.loads(serialize(p))
    assert doc["V"] == RAW.voltage
    assert doc["P"] == RAW.power
    assert doc["E_total"] == RAW.total_e
    assert doc["status"] == RAW.fault_code
    assert doc["serial_no"] == "FLAT_SN_77"


def test_unit_conversion_matches_raw():
    p = shape_payload(Shape.UNIT_CONVERSION, RAW, NOW)
    assert isinstance(p, UnitConversionPayload)
    r = p.readings
    assert r.voltage_mv == RAW.voltage * 10
    assert r.power_kw == pytest.approx(RAW.power / 1000)
    assert r.today_kwh == pytest.approx(RAW.today_e / 1000)
    assert r.total_kwh == pytest.approx(RAW.total_e / 1000)
    assert r.temp_f == RAW.temperature * 9 // 5 + 32
    assert r.frequency_hz == RAW.frequency


def test_unit_conversion_consistent_with_same_draw():
    raw = draw_raw_reading(random.Random(99))
    p = synthesize(Shape.UNIT_CONVERSION, random.Random(99))
    assert p.readings.voltage_mv == raw.voltage * 10
    assert p.readings.power_kw == pytest.approx(raw.power / 1000)
    assert p.readings.temp_f == raw.temperature * 9 // 5 + 32


def test_payloads_are_immutable():
    p = shape_payload(Shape.FLAT, RAW, NOW)
    with pytest.raises(Exception):
        p.temp = 1


def test_serialized_payload_parses_back_to_same_shape():
    for shape in Shape:
        parsed = PAYLOAD_ADAPTER.validate_json(serialize(shape_payload(shape, RAW, NOW)))
        assert parsed.shape is shape


# ============================================================
# VALUE GENERATION
# ============================================================

def test_raw_ranges():
    rng = random.Random(5)
    for _ in range(2000):
        raw = draw_raw_reading(rng)
        assert 6100 <= raw.voltage <= 6299
        assert 147000 <= raw.power <= 147499
        assert 700 <= raw.frequency <= 749
        assert 0 <= raw.today_e <= 999
        assert 500000 <= raw.total_e <= 509999
        assert 645 <= raw.temperature <= 654
        assert 1 <= raw.device_num <= 50


def test_fault_rate_converges():
    rng = random.Random(1234)
    n = 100_000
    codes = [random_fault(rng) for _ in range(n)]
    nonzero = [c for c in codes if c != 0]

    assert abs(len(nonzero) / n - FAULT_PROBABILITY) < 0.006
    assert set(nonzero) <= set(FAULT_CODES)


def test_seeded_synthesis_is_deterministic():
    a = synthesize(Shape.NESTED, random.Random(42), NOW)
    b = synthesize(Shape.NESTED, random.Random(42), NOW)
    assert a == b


def test_rng_for_is_per_index():
    a = draw_raw_reading(rng_for(7, 10))
    b = draw_raw_reading(rng_for(7, 10))
    c = draw_raw_reading(rng_for(7, 11))
    assert a == b
    assert a != c


def test_rng_for_without_seed_shares_process_source():
    assert rng_for(None, 1) is rng_for(None, 2)
