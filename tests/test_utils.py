"""Performance monitoring and result export helpers."""

import json

import pytest

from ec import G
from utils import (
    PerformanceMonitor,
    create_performance_report,
    format_duration,
    get_system_info,
    save_results,
)


@pytest.mark.parametrize("seconds,expected", [
    (0.0000025, "2.5us"),
    (0.25, "250.0ms"),
    (2.5, "2.50s"),
    (125, "2m 5.0s"),
])
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_monitor_summary():
    monitor = PerformanceMonitor()
    for _ in range(3):
        with monitor.start_operation("cast_vote"):
            sum(range(1000))
    with monitor.start_operation("tally"):
        pass

    summary = monitor.get_summary()
    assert summary['total_operations'] == 4
    assert summary['operations']['cast_vote']['count'] == 3
    assert summary['operations']['tally']['count'] == 1
    assert summary['total_duration'] >= 0

    monitor.reset()
    assert monitor.get_summary()['total_operations'] == 0


def test_monitor_records_failures():
    monitor = PerformanceMonitor()
    with pytest.raises(RuntimeError):
        with monitor.start_operation("boom"):
            raise RuntimeError("fail")
    assert monitor.metrics[0].additional_data['exception'] is True


def test_performance_report():
    monitor = PerformanceMonitor()
    assert "No performance data available." in create_performance_report(monitor)
    with monitor.start_operation("decrypt_tally"):
        pass
    assert "DECRYPT_TALLY" in create_performance_report(monitor)


def test_system_info():
    info = get_system_info()
    assert info['cpu_count_logical'] >= 1
    assert 'python_version' in info


def test_save_results(tmp_path):
    path = tmp_path / "out" / "results.json"
    save_results({'generator': G, 'values': (1, 2), 'blob': b"\x01"}, path)
    data = json.loads(path.read_text())
    assert data['data']['generator'] == {'x': 1, 'y': 2}
    assert data['data']['values'] == [1, 2]
    assert data['data']['blob'] == "01"
    assert 'system_info' in data['metadata']
