from django.urls import path

from . import views

urlpatterns = [
    path('requests/', views.request_list_view, name='request-list'),
    path('requests/mine/', views.my_requests_view, name='request-mine'),
    path('requests/<str:request_id>/', views.request_detail_view, name='request-detail'),
    path('requests/<str:request_id>/status/', views.request_status_view, name='request-status'),
    path('requests/<str:request_id>/override/', views.request_override_view, name='request-override'),
    path('requests/<str:request_id>/interests/', views.request_interests_view, name='request-interests'),
    path('requests/<str:request_id>/confirm/', views.confirm_match_view, name='request-confirm'),
    path('requests/<str:request_id>/match/', views.request_match_view, name='request-match'),
    path('requests/<str:request_id>/candidates/', views.request_candidates_view, name='request-candidates'),

    path('matches/', views.match_list_view, name='match-list'),
    path('search/nearby/', views.donors_nearby_view, name='search-nearby'),
    path('search/donors/', views.donor_search_view, name='search-donors'),
    path('statistics/', views.statistics_view, name='statistics'),
]
