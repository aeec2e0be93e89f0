"""
URL configuration for the LexiLearn backend.

All endpoints live under /api/; unknown routes answer with a JSON 404.
"""
from django.conf import settings
from django.conf.urls.static import static
from django.urls import include, path

from .health import health_check

urlpatterns = [
    path('api/health/', health_check, name='health'),
    path('api/auth/', include('accounts.auth_urls')),
    path('api/users/', include('accounts.urls')),
    path('api/', include('progress.urls')),
    path('api/', include('content.urls')),
]

handler404 = 'lexilearn.exceptions.route_not_found'
handler500 = 'lexilearn.exceptions.server_error'

# Serve uploaded media in development
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
