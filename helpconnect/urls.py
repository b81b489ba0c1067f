"""helpconnect URL Configuration

The matching API lives under ``/api/``; the Django admin doubles as the
login page for session-authenticated API clients.
"""
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('blood.urls')),
    path('api/donors/', include('donor.urls')),
    path('api/profiles/', include('profiles.urls')),
]
