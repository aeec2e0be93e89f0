"""
User management routes
"""
from django.urls import include, path
from rest_framework.routers import SimpleRouter

from . import views

router = SimpleRouter()
router.register(r'students', views.StudentViewSet, basename='student')

urlpatterns = [
    path('profile/', views.profile, name='user-profile'),
    path('settings/', views.update_settings, name='user-settings'),
    path('change-password/', views.change_password, name='user-change-password'),
    path('teachers/', views.teachers, name='user-teachers'),
    path('', views.user_list, name='user-list'),
    path('', include(router.urls)),
]
