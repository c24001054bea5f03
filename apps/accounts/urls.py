"""
Account URL configuration.
"""

from django.urls import path

from apps.accounts.views import (
    AdminDetailView,
    AdminListView,
    LoginView,
    ProfileView,
    SignupView,
)

urlpatterns = [
    path('signup', SignupView.as_view(), name='signup'),
    path('login', LoginView.as_view(), name='login'),
    path('profile/<int:user_id>', ProfileView.as_view(), name='profile'),
    path('admins', AdminListView.as_view(), name='admin-list'),
    path('admins/<int:user_id>', AdminDetailView.as_view(), name='admin-detail'),
]
