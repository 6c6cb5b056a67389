"""RetryPolicy 测试"""

import pytest

from ghappsetup import config
from ghappsetup.configwait import RetryPolicy, parse_duration


class TestRetryPolicy:
    """策略构造与校验"""

    def test_valid_policy(self):
        policy = RetryPolicy(max_attempts=3, interval=0.5)
        assert policy.max_attempts == 3
        assert policy.interval == 0.5

    @pytest.mark.parametrize("attempts", [0, -1])
    def test_rejects_non_positive_attempts(self, attempts):
        with pytest.raises(ValueError, match="max_attempts"):
            RetryPolicy(max_attempts=attempts, interval=1.0)

    def test_rejects_bool_attempts(self):
        with pytest.raises(ValueError, match="max_attempts"):
            RetryPolicy(max_attempts=True, interval=1.0)

    def test_rejects_negative_interval(self):
        with pytest.raises(ValueError, match="interval"):
            RetryPolicy(max_attempts=1, interval=-0.1)

    def test_zero_interval_allowed(self):
        assert RetryPolicy(max_attempts=1, interval=0).interval == 0

    def test_is_immutable(self):
        policy = RetryPolicy(max_attempts=1, interval=0)
        with pytest.raises(AttributeError):
            policy.max_attempts = 5

    def test_environment_defaults(self):
        """HTTP 服务次数更多、间隔更长"""
        server = RetryPolicy.server_default()
        function = RetryPolicy.function_default()

        assert server == RetryPolicy(config.SERVER_MAX_ATTEMPTS, config.SERVER_RETRY_INTERVAL)
        assert function == RetryPolicy(config.FUNCTION_MAX_ATTEMPTS, config.FUNCTION_RETRY_INTERVAL)
        assert server.max_attempts > function.max_attempts
        assert server.interval > function.interval


class TestParseDuration:
    """时长解析"""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("500ms", 0.5),
            ("2s", 2.0),
            ("1m", 60.0),
            ("1m30s", 90.0),
            ("1.5s", 1.5),
            ("2.5", 2.5),
            (" 3s ", 3.0),
        ],
    )
    def test_valid(self, text, expected):
        assert parse_duration(text) == pytest.approx(expected)

    @pytest.mark.parametrize("text", ["", "abc", "5x", "s", "2s junk", "inf", "nan"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_duration(text)


class TestFromEnv:
    """环境变量覆盖"""

    def test_no_env_uses_default(self, server_env):
        default = RetryPolicy(4, 0.25)
        assert RetryPolicy.from_env(default) == default

    def test_env_overrides(self, server_env, monkeypatch):
        monkeypatch.setenv(config.ENV_MAX_RETRIES, "7")
        monkeypatch.setenv(config.ENV_RETRY_INTERVAL, "500ms")

        policy = RetryPolicy.from_env()
        assert policy == RetryPolicy(7, 0.5)

    @pytest.mark.parametrize("attempts,interval", [("abc", "xyz"), ("0", "0s"), ("-3", "-1")])
    def test_invalid_env_ignored(self, server_env, monkeypatch, attempts, interval):
        monkeypatch.setenv(config.ENV_MAX_RETRIES, attempts)
        monkeypatch.setenv(config.ENV_RETRY_INTERVAL, interval)

        assert RetryPolicy.from_env() == RetryPolicy.server_default()
