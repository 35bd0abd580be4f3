"""Demo service: emits structured log lines through a rotating sink until stopped."""

import argparse
import logging
import random
import signal
import sys
import time
import uuid

from logengine import Logger, load_config, load_yaml_config

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [log-engine] %(levelname)s %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

_running = True


def _signal_handler(sig, _frame):
    global _running
    logger.info("Shutdown signal received (signal %d), stopping...", sig)
    _running = False


LEVELS = ["info", "info", "info", "info", "debug", "warning", "error"]
SERVICES = ["auth-api", "order-svc", "payment-gw", "user-svc", "catalog-api"]
MESSAGES = {
    "debug": [
        "Entering request handler",
        "Parsed request body",
        "Token validation started",
    ],
    "info": [
        "Request processed successfully",
        "Health check passed",
        "Cache hit for user session",
        "Outbound HTTP 200 from upstream",
    ],
    "warning": [
        "Slow query detected",
        "Connection pool nearing capacity",
        "Retry attempt for upstream call",
    ],
    "error": [
        "Failed to connect to database",
        "Timeout waiting for upstream response",
        "Unhandled exception in request handler",
    ],
}


def emit_entry(log: Logger):
    level = random.choice(LEVELS)
    entry = log.with_fields({
        "service": random.choice(SERVICES),
        "request_id": uuid.uuid4().hex[:8],
        "duration_ms": random.randint(1, 900),
    })
    getattr(entry, level)(random.choice(MESSAGES[level]))


def main():
    parser = argparse.ArgumentParser(description="Emit demo structured logs")
    parser.add_argument("--config", help="YAML file with logger settings")
    parser.add_argument("--rate", type=float, default=20.0, help="Lines per second")
    parser.add_argument("--count", type=int, default=0, help="Stop after N lines (0 = run until signalled)")
    args = parser.parse_args()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    config = load_config(load_yaml_config(args.config))
    logger.info(
        "Config: path=%r, maxsize=%d, link=%r, level=%s, std=%s, fileline=%s",
        config.path, config.max_size, config.link, config.level.name, config.std, config.file_line,
    )

    written = 0
    with Logger(config) as log:
        log.with_field("rate", args.rate).info("demo service started")
        try:
            while _running and (args.count <= 0 or written < args.count):
                emit_entry(log)
                written += 1
                time.sleep(1.0 / args.rate)
        except KeyboardInterrupt:
            pass
        log.infof("demo service stopping after %d entries", written)

    logger.info("Shut down cleanly. Total entries emitted: %d", written)


if __name__ == "__main__":
    main()
