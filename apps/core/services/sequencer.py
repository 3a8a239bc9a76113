# PATH: apps/core/services/sequencer.py
"""
Reference sequencer

next_reference(year) -> "RES-2025-00042"

- 연도별 Counter 행을 select_for_update 로 잠그고 F() 로 증가
- 읽고-쓰기(find-then-write) 금지: 동시 할당에서도 중복 없음
- get_or_create 는 최초 생성 경합 시 IntegrityError 를 삼키고 다시 get 한다
"""
from __future__ import annotations

from django.conf import settings
from django.db import transaction
from django.db.models import F

from apps.core.models import Counter


def _prefix() -> str:
    return str(getattr(settings, "RESULTS_REFERENCE_PREFIX", "RES") or "RES")


def counter_name(year: int) -> str:
    return f"result_{int(year)}"


@transaction.atomic
def next_sequence(name: str) -> int:
    counter, _ = Counter.objects.select_for_update().get_or_create(name=name)
    Counter.objects.filter(pk=counter.pk).update(seq=F("seq") + 1)
    counter.refresh_from_db(fields=["seq"])
    return int(counter.seq)


def format_reference(year: int, seq: int) -> str:
    return f"{_prefix()}-{int(year)}-{int(seq):05d}"


def next_reference(year: int) -> str:
    return format_reference(year, next_sequence(counter_name(year)))
