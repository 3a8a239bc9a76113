# PATH: apps/core/middleware/campus.py
from __future__ import annotations

import logging

from django.http import JsonResponse

from apps.api.common.responses import failure_body
from apps.core.campus import CampusResolutionError, resolve_requested_campus_id

logger = logging.getLogger(__name__)


class CampusMiddleware:
    """
    Requested-campus resolution (X-Campus-Id header / ?campus_id=).

    - request.requested_campus_id 에 결과를 싣는다 (없으면 None)
    - 권한 판정(다른 캠퍼스 요청 금지)은 뷰에서 principal 과 함께 수행
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        try:
            campus_id = resolve_requested_campus_id(request)
        except CampusResolutionError as e:
            logger.info("campus resolution failed: code=%s path=%s", e.code, request.path)
            return JsonResponse(
                failure_body(e.message, {"code": e.code}),
                status=e.http_status,
            )

        request.requested_campus_id = campus_id
        return self.get_response(request)
