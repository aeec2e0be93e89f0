"""
Content routes - modules, quizzes, assignments
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import AssignmentViewSet, ModuleViewSet, QuizViewSet

router = DefaultRouter()
router.register(r'modules', ModuleViewSet, basename='module')
router.register(r'quizzes', QuizViewSet, basename='quiz')
router.register(r'assignments', AssignmentViewSet, basename='assignment')

urlpatterns = [
    path('', include(router.urls)),
]
