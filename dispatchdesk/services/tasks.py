from celery import Celery
from dispatchdesk.core.config import settings

celery_app = Celery(
    "worker",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_BACKEND,
)
celery_app.conf.task_routes = {"dispatchdesk.services.tasks.sync_call_reports": {"queue": "telephony"}}
celery_app.conf.beat_schedule = {
    "sync-call-reports": {
        "task": "dispatchdesk.services.tasks.sync_call_reports",
        "schedule": settings.CALL_SYNC_INTERVAL,
    },
}


@celery_app.task(bind=True, max_retries=3)
def sync_call_reports(self):
    import asyncio
    from dispatchdesk.services.tasks_internal import sync_call_reports_async

    try:
        return asyncio.run(sync_call_reports_async())
    except Exception as e:
        retry_kwargs = {"countdown": 2 ** self.request.retries}
        raise self.retry(exc=e, **retry_kwargs)
