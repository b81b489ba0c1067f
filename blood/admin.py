from django.contrib import admin, messages

from blood.constants import RequestStatus
from blood.exceptions import MatchingError
from blood.services import get_services
from .models import BloodRequest, DonorInterest, MatchConfirmation


class DonorInterestInline(admin.TabularInline):
    model = DonorInterest
    extra = 0
    can_delete = False
    readonly_fields = ['donor', 'timestamp']


@admin.register(BloodRequest)
class BloodRequestAdmin(admin.ModelAdmin):
    list_display = ['request_id', 'recipient_name', 'bloodgroup', 'location', 'urgency', 'units_required', 'status', 'time_created']
    list_filter = ['bloodgroup', 'urgency', 'status']
    search_fields = ['request_id', 'recipient_name', 'location', 'owner']
    # Status only moves through the matching services.
    readonly_fields = ['request_id', 'owner', 'status', 'time_created', 'status_changed_at']
    inlines = [DonorInterestInline]
    actions = ['expire_requests']

    @admin.action(description="Expire selected requests")
    def expire_requests(self, request, queryset):
        services = get_services()
        expired = 0
        for blood_request in queryset:
            try:
                services.requests.override_status(
                    request.user.get_username(),
                    blood_request.request_id,
                    RequestStatus.EXPIRED,
                    reason="expired from admin",
                )
            except MatchingError as exc:
                self.message_user(request, f"{blood_request.request_id}: {exc.message}", messages.ERROR)
                continue
            expired += 1
        self.message_user(request, f"Expired {expired} request(s).", messages.SUCCESS)


@admin.register(MatchConfirmation)
class MatchConfirmationAdmin(admin.ModelAdmin):
    list_display = ['blood_request', 'donor', 'confirmed_by', 'confirmed_at']
    search_fields = ['blood_request__request_id', 'donor__donor_id', 'confirmed_by']
    readonly_fields = ['blood_request', 'donor', 'confirmed_by', 'confirmed_at']
