from django.urls import path

from . import auth

urlpatterns = [
    path('register/', auth.register, name='auth-register'),
    path('login/', auth.login, name='auth-login'),
    path('student-login/', auth.student_login, name='auth-student-login'),
    path('me/', auth.me, name='auth-me'),
    path('logout/', auth.logout, name='auth-logout'),
    path('refresh-token/', auth.refresh_token, name='auth-refresh-token'),
]
