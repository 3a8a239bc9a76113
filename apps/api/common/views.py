"""
공통 API 뷰
"""
from django.db import connection
from django.http import JsonResponse


def health_check(request):
    """
    헬스체크 엔드포인트

    Returns:
        - 200: 모든 시스템 정상
        - 503: 데이터베이스 연결 실패
    """
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")

        return JsonResponse({
            "status": "healthy",
            "service": "campus-results-api",
            "database": "connected",
        }, status=200)
    except Exception:
        return JsonResponse({
            "status": "unhealthy",
            "service": "campus-results-api",
            "database": "disconnected",
        }, status=503)
