from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class PageLimitPagination(PageNumberPagination):
    """
    ``?page=&limit=`` pagination.

    The page of results is returned under a collection key chosen by the
    view (``modules``, ``students``...) next to the paging counters.
    """
    page_size = 10
    page_query_param = 'page'
    page_size_query_param = 'limit'
    max_page_size = 100
    collection_key = 'results'

    def get_paginated_response(self, data, collection_key=None):
        return Response({
            'success': True,
            collection_key or self.collection_key: data,
            'totalPages': self.page.paginator.num_pages,
            'currentPage': self.page.number,
            'total': self.page.paginator.count,
        })


class CollectionResponseMixin:
    """View mixin naming the collection key of paginated responses."""
    collection_key = 'results'

    def get_paginated_response(self, data):
        return self.paginator.get_paginated_response(data, collection_key=self.collection_key)
