from __future__ import annotations

from celery.schedules import crontab


def configure_packages_expiration_schedule(celery_app) -> None:
    celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
    celery_app.conf.beat_schedule.update(
        {
            "packages-expiration-daily-0200-nairobi": {
                "task": "app.workers.tasks.packages_expiration.run_package_expiration_sweep",
                "schedule": crontab(hour=2, minute=0),
                "options": {"queue": "q_normal"},
            },
        }
    )
