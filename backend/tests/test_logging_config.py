"""
test_logging_config.py — JSON formatter and per-operation timing tracker.
"""

import json
import logging

from washroom_estimator.services.logging_config import JSONFormatter
from washroom_estimator.services.perf_monitor import PerformanceTracker, timed, tracker


def _record(msg="hello", **extra):
    record = logging.LogRecord("washroom-api.test", logging.WARNING, __file__, 10, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:

    def test_base_fields(self):
        entry = json.loads(JSONFormatter().format(_record()))
        assert entry["level"] == "WARNING"
        assert entry["logger"] == "washroom-api.test"
        assert entry["message"] == "hello"

    def test_context_fields_copied(self):
        entry = json.loads(JSONFormatter().format(_record(washroom_id="w1", service_id="tiling")))
        assert entry["washroom_id"] == "w1"
        assert entry["service_id"] == "tiling"

    def test_unknown_extra_ignored(self):
        entry = json.loads(JSONFormatter().format(_record(secret="x")))
        assert "secret" not in entry


class TestPerformanceTracker:

    def test_record_and_reset(self):
        local = PerformanceTracker()
        local.record("costing", 10.0)
        local.record("costing", 30.0, failed=True)
        metrics = local.get_metrics()
        assert metrics["calls_by_operation"] == {"costing": 2}
        assert metrics["avg_duration_ms_by_operation"] == {"costing": 20.0}
        assert metrics["error_count"] == 1
        local.reset()
        assert local.get_metrics()["calls_by_operation"] == {}

    def test_memory_is_constant_per_operation(self):
        local = PerformanceTracker()
        for i in range(5000):
            local.record("costing", float(i % 10))
        assert local._stats["costing"] == [5000, 22500.0, 9.0]
        metrics = local.get_metrics()
        assert metrics["calls_by_operation"] == {"costing": 5000}
        assert metrics["avg_duration_ms_by_operation"] == {"costing": 4.5}
        assert metrics["max_duration_ms_by_operation"] == {"costing": 9.0}

    def test_timed_records_operation(self):
        @timed
        def add(a, b):
            return a + b

        assert add(2, 3) == 5
        assert add.__qualname__ in tracker.get_metrics()["calls_by_operation"]
