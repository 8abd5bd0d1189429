import pytest

from loggertools.metricserver import metrics_text

EXPECTED_A = """
# HELP a_node_timex_pps_calibration_total Pulse per second count of calibration intervals.
# TYPE a_node_timex_pps_calibration_total counter
a_node_timex_pps_calibration_total 1
"""


def test_first_instance_uses_letter_a():
    assert metrics_text("0") == EXPECTED_A


def test_integer_index_accepted():
    assert metrics_text(0) == EXPECTED_A


def test_index_wraps_around_four_instances():
    assert metrics_text("4") == metrics_text("0")
    assert metrics_text("5") == metrics_text("1")


def test_second_instance_names_counter_b():
    assert "b_node_timex_pps_calibration_total 1" in metrics_text("1")


@pytest.mark.parametrize("index", ["", "x", "1.5", "-1"])
def test_invalid_index_raises(index):
    with pytest.raises(ValueError):
        metrics_text(index)