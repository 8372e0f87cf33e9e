"""Entry point for the covenant-monitor batch worker."""

from __future__ import annotations

from platform_core.logging import get_logger, setup_logging
from platform_workers.rq_harness import WorkerConfig, run_rq_worker

from covenant_monitor_api.core.config import settings_from_env
from covenant_monitor_api.worker import _test_hooks


def main() -> None:
    """Start the RQ worker for batch covenant tests."""
    settings = settings_from_env()
    setup_logging(
        level=settings["logging"]["level"],
        format_mode=settings["logging"]["format"],
        service_name="covenant-monitor-worker",
        instance_id=None,
        extra_fields=["queue"],
    )
    cfg: WorkerConfig = {
        "redis_url": settings["redis"]["url"],
        "queue_name": settings["rq"]["queue_name"],
    }
    get_logger(__name__).info("Starting RQ worker", extra={"queue": cfg["queue_name"]})
    runner = _test_hooks.test_runner if _test_hooks.test_runner is not None else run_rq_worker
    runner(cfg)


if __name__ == "__main__":
    main()
