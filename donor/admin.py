from django.contrib import admin

from .models import Donor


@admin.register(Donor)
class DonorAdmin(admin.ModelAdmin):
    list_display = ['donor_id', 'name', 'bloodgroup', 'location', 'is_available', 'eligible_to_donate']
    list_filter = ['bloodgroup', 'is_available', 'eligible_to_donate']
    search_fields = ['donor_id', 'name', 'owner', 'location']
    readonly_fields = ['donor_id', 'owner', 'donation_history', 'created_at', 'updated_at']
