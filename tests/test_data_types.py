"""
Tests for line parsing and result records.

Run with:
    pytest tests/test_data_types.py -v
"""

import json
import math

import pytest

from espserial import DeviceStatus, ParseError, SensorData, TestResult


# =============================================================================
# STATUS PARSING (STATUS:)
# =============================================================================

class TestDeviceStatusParsing:
    """Test DeviceStatus parsing from STATUS: lines."""

    def test_parse_connected_status(self):
        line = 'STATUS:{"wifi":"connected","led":"green","uptime":"42"}'
        status = DeviceStatus.from_line(line)

        assert status is not None
        assert status.wifi_connected is True
        assert status.led_status == "green"
        assert status.uptime == 42

    def test_parse_disconnected_wifi(self):
        line = 'STATUS:{"wifi":"disconnected","led":"off","uptime":"7"}'
        status = DeviceStatus.from_line(line)
        assert status.wifi_connected is False
        assert status.led_status == "off"

    def test_wifi_compare_is_exact(self):
        """Only the literal 'connected' counts."""
        line = 'STATUS:{"wifi":"Connected","led":"red","uptime":"1"}'
        assert DeviceStatus.from_line(line).wifi_connected is False

    def test_numeric_uptime(self):
        line = 'STATUS:{"wifi":"connected","led":"red","uptime":3600}'
        assert DeviceStatus.from_line(line).uptime == 3600

    def test_json_number_uptime(self):
        line = 'STATUS:{"wifi":"connected","led":"red","uptime":42}'
        assert DeviceStatus.from_line(line).uptime == 42

    def test_fractional_uptime_truncated(self):
        """A fractional uptime string still yields a status update."""
        line = 'STATUS:{"wifi":"connected","led":"red","uptime":"42.7"}'
        status = DeviceStatus.from_line(line)
        assert status is not None
        assert status.uptime == 42
        assert status.led_status == "red"

    def test_fractional_json_uptime_truncated(self):
        line = 'STATUS:{"wifi":"connected","led":"red","uptime":99.9}'
        assert DeviceStatus.from_line(line).uptime == 99

    def test_non_status_line_returns_none(self):
        assert DeviceStatus.from_line("TEMP:21.0,HUM:40.0") is None
        assert DeviceStatus.from_line("") is None

    def test_not_json_raises(self):
        with pytest.raises(ParseError):
            DeviceStatus.from_line("STATUS:not-json")

    def test_non_object_payload_raises(self):
        with pytest.raises(ParseError):
            DeviceStatus.from_line("STATUS:[1,2,3]")

    def test_missing_field_raises(self):
        with pytest.raises(ParseError):
            DeviceStatus.from_line('STATUS:{"wifi":"connected","uptime":"1"}')

    def test_bad_uptime_raises(self):
        with pytest.raises(ParseError):
            DeviceStatus.from_line('STATUS:{"wifi":"connected","led":"g","uptime":"soon"}')

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            DeviceStatus.from_line("STATUS:{")


# =============================================================================
# SENSOR PARSING (TEMP:, CO2:)
# =============================================================================

class TestSensorDataParsing:
    """Every line becomes a SensorData; recognised lines are also parsed."""

    def test_raw_passthrough(self):
        data = SensorData.from_line("WiFi scan: 3 networks")
        assert data.raw == "WiFi scan: 3 networks"
        assert str(data) == "WiFi scan: 3 networks"
        assert data.temperature is None
        assert data.co2 is None
        assert not data.has_climate
        assert not data.has_air_quality

    def test_parse_temperature_humidity(self):
        data = SensorData.from_line("TEMP:23.5,HUM:41.2")
        assert data.has_climate
        assert data.temperature == pytest.approx(23.5)
        assert data.humidity == pytest.approx(41.2)
        assert data.raw == "TEMP:23.5,HUM:41.2"

    def test_parse_negative_temperature(self):
        data = SensorData.from_line("TEMP:-4.25,HUM:80")
        assert data.temperature == pytest.approx(-4.25)

    def test_parse_co2_tvoc(self):
        data = SensorData.from_line("CO2:412,TVOC:9")
        assert data.has_air_quality
        assert data.co2 == 412
        assert data.tvoc == 9
        assert not data.has_climate

    def test_temp_without_humidity(self):
        data = SensorData.from_line("TEMP:23.5")
        assert not data.has_climate
        assert data.raw == "TEMP:23.5"

    def test_temp_nan_rejected(self):
        data = SensorData.from_line("TEMP:nan,HUM:40")
        assert not data.has_climate

    def test_invalid_co2(self):
        data = SensorData.from_line("CO2:high,TVOC:9")
        assert data.co2 is None
        assert data.tvoc is None

    def test_timestamp_set(self):
        assert SensorData.from_line("x").timestamp is not None


# =============================================================================
# RESULT RECORDS
# =============================================================================

class TestTestResult:

    def test_to_dict_keys(self):
        result = TestResult("sensor_data", readings=3, avg_temp=21.0, avg_hum=40.0)
        assert result.to_dict() == {
            "test": "sensor_data",
            "readings": 3,
            "avgTemp": 21.0,
            "avgHum": 40.0,
        }

    def test_defaults_are_nan(self):
        result = TestResult("sensor_data")
        assert result.readings == 0
        assert math.isnan(result.avg_temp)
        assert math.isnan(result.avg_hum)

    def test_nan_serialises(self):
        dump = json.dumps(TestResult("sensor_data").to_dict())
        assert "NaN" in dump

    def test_frozen(self):
        result = TestResult("sensor_data")
        with pytest.raises(AttributeError):
            result.readings = 5
