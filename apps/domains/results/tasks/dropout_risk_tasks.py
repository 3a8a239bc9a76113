# apps/domains/results/tasks/dropout_risk_tasks.py
import logging

from celery import shared_task

from apps.domains.results.services.analytics_service import refresh_dropout_risk

logger = logging.getLogger(__name__)


@shared_task(bind=True, autoretry_for=(Exception,), retry_kwargs={"max_retries": 3})
def compute_dropout_risk_task(self, result_id: int):
    """
    publish 후 on_commit 으로 큐잉.
    결과는 참고용 (실패해도 publish 에 영향 없음).
    """
    try:
        return refresh_dropout_risk(result_id)
    except Exception:
        logger.exception("dropout risk computation failed for result %s", result_id)
        raise
