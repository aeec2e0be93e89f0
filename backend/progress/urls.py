"""
Progress routes
"""
from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import ProgressViewSet

router = SimpleRouter()
router.register(r'progress', ProgressViewSet, basename='progress')

urlpatterns = [
    path('', include(router.urls)),
]
