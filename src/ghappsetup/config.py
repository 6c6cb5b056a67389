"""ghappsetup 配置

配置分为以下几类：
- 环境检测：函数运行时标记变量
- 重试配置：不同运行环境的默认重试策略
- 懒加载配置：等待其他调用方加载完成的轮询间隔
- 门控配置：503 响应参数
- 日志 / 指标配置
- 演示服务配置
"""

import os

# === 环境检测 ===
LAMBDA_ENV_VAR = "AWS_LAMBDA_FUNCTION_NAME"  # 存在即视为函数运行环境

# === 重试配置（HTTP 服务，适合容器启动）===
SERVER_MAX_ATTEMPTS = 30
SERVER_RETRY_INTERVAL = 2.0  # 秒

# === 重试配置（Lambda，适合冷启动预算）===
FUNCTION_MAX_ATTEMPTS = 5
FUNCTION_RETRY_INTERVAL = 1.0  # 秒

# === 重试配置的环境变量覆盖 ===
ENV_MAX_RETRIES = "CONFIG_WAIT_MAX_RETRIES"
ENV_RETRY_INTERVAL = "CONFIG_WAIT_RETRY_INTERVAL"  # 例如 "500ms", "2s", "1m30s"

# === 懒加载配置 ===
LAZY_LOAD_POLL_INTERVAL = 0.05  # 非加载方轮询间隔（秒）

# === ReadyGate 配置 ===
RETRY_AFTER_SECONDS = 5  # 503 响应的 Retry-After 头
WEBSOCKET_TRY_AGAIN_CODE = 1013  # 拒绝 websocket 时的关闭码

# === 日志配置 ===
LOG_LEVEL = os.environ.get("GHAPPSETUP_LOG_LEVEL", "INFO")  # 日志级别

# === 指标配置 ===
METRICS_ENABLED = True  # 是否启用指标收集

# === 演示服务配置 ===
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "8080"))
HEALTH_PATH = "/healthz"
