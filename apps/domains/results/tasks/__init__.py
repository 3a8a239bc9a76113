# autodiscover_tasks() 는 "<app>.tasks" 만 import 한다
from .dropout_risk_tasks import compute_dropout_risk_task

__all__ = ["compute_dropout_risk_task"]
