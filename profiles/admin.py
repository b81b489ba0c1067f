from django.contrib import admin
from .models import UserProfile

@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ['principal', 'name', 'role']
    list_filter = ['role']
    search_fields = ['principal', 'name']
