from django.urls import path

from . import views

urlpatterns = [
    path('', views.donor_list_view, name='donor-list'),
    path('me/', views.my_donor_view, name='donor-me'),
    path('<str:donor_id>/', views.donor_detail_view, name='donor-detail'),
    path('<str:donor_id>/availability/', views.donor_availability_view, name='donor-availability'),
    path('<str:donor_id>/donations/', views.donor_donation_view, name='donor-donations'),
    path('<str:donor_id>/requests/', views.donor_requests_view, name='donor-requests'),
    path('<str:donor_id>/interests/', views.donor_interests_view, name='donor-interests'),
]
