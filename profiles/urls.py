from django.urls import path

from . import views

urlpatterns = [
    path('me/', views.my_profile_view, name='profile-me'),
    path('roles/', views.assign_role_view, name='profile-assign-role'),
    path('<str:principal>/', views.profile_detail_view, name='profile-detail'),
]
