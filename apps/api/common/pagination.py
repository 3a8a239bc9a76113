# PATH: apps/api/common/pagination.py
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class EnvelopePagination(PageNumberPagination):
    """
    ?page=1&limit=50

    응답: {success, message, data: [...], pagination: {total, page, limit, pages}}
    """
    page_size = 50
    page_size_query_param = "limit"
    max_page_size = 200
    message = "Fetched."

    def get_paginated_response(self, data):
        paginator = self.page.paginator
        return Response({
            "success": True,
            "message": self.message,
            "data": data,
            "pagination": {
                "total": paginator.count,
                "page": self.page.number,
                "limit": paginator.per_page,
                "pages": paginator.num_pages,
            },
        })
