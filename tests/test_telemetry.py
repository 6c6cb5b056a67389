"""Telemetry 测试"""

import logging

from ghappsetup.telemetry import Metrics, get_logger, metric_key, setup_logging


class TestMetrics:
    """Metrics 测试"""

    def test_counter_with_labels(self):
        m = Metrics()
        m.inc("reload.triggered", {"reason": "sighup"})
        m.inc("reload.triggered", {"reason": "sighup"})
        m.inc("reload.triggered", {"reason": "callback"})

        assert m.get_counter("reload.triggered", {"reason": "sighup"}) == 2
        assert m.get_counter("reload.triggered", {"reason": "callback"}) == 1
        assert m.get_counter("reload.triggered") == 0

    def test_gauge_overwrites(self):
        m = Metrics()
        m.gauge("runtime.ready", 1.0)
        m.gauge("runtime.ready", 0.0)
        assert m.get_gauge("runtime.ready") == 0.0

    def test_snapshot_and_reset(self):
        m = Metrics()
        m.inc("load.attempts", {"loader": "Runtime"}, value=3)
        m.gauge("runtime.ready", 1.0)

        snapshot = m.snapshot()
        assert snapshot == {
            "counters": {"load.attempts{loader=Runtime}": 3},
            "gauges": {"runtime.ready": 1.0},
        }

        m.reset()
        assert m.snapshot() == {"counters": {}, "gauges": {}}

    def test_metric_key_sorts_labels(self):
        assert metric_key("x") == "x"
        assert metric_key("x", {"b": "2", "a": "1"}) == "x{a=1,b=2}"


class TestLogging:
    """日志配置测试"""

    def test_get_logger(self):
        assert get_logger("ghappsetup.test").name == "ghappsetup.test"

    def test_setup_logging_quiets_access_log(self):
        setup_logging("debug")
        assert logging.getLogger("uvicorn.access").level == logging.WARNING
