from celery import Celery

from core.config import settings

celery_app = Celery(
    "pendel",
    broker=settings.celery.CELERY_BROKER_URL,
    backend=settings.celery.CELERY_RESULT_BACKEND,
)

# Configure Celery
celery_app.conf.update(
    # Task settings
    task_time_limit=settings.celery.CELERY_TASK_TIME_LIMIT,
    task_soft_time_limit=settings.celery.CELERY_TASK_SOFT_TIME_LIMIT,

    # Result settings
    result_expires=3600,  # Results expire after 1 hour

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    # Serialization settings
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],

    # Timezone
    timezone="Europe/Stockholm",
    enable_utc=True,

    # Task routes
    task_routes={
        "src.transit_bc.journey.infrastructure.tasks.*": {"queue": "journeys"},
        "src.transit_bc.commute.infrastructure.tasks.*": {"queue": "commute"},
    },

    # Beat schedule for periodic tasks
    beat_schedule={
        "refresh-active-journeys-every-minute": {
            "task": "src.transit_bc.journey.infrastructure.tasks.refresh_active_journeys",
            "schedule": 60.0,
            "options": {"queue": "journeys"},
        },
        "detect-compensation-cases-hourly": {
            "task": "src.transit_bc.journey.infrastructure.tasks.detect_compensation_cases",
            "schedule": 3600.0,
            "options": {"queue": "journeys"},
        },
        # Only needed when COMMUTE_MONITOR_ENABLED is off in the API
        "check-commute-routes-every-minute": {
            "task": "src.transit_bc.commute.infrastructure.tasks.check_commute_routes",
            "schedule": 60.0,
            "options": {"queue": "commute"},
        },
    },
)

# Autodiscover tasks
celery_app.autodiscover_tasks([
    "src.transit_bc.journey.infrastructure.tasks",
    "src.transit_bc.commute.infrastructure.tasks",
])
