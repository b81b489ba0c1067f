from django.db import models

from blood.constants import BloodType, RequestStatus, Urgency
from donor import models as dmodels


class BloodRequest(models.Model):
    request_id = models.CharField(max_length=64, unique=True)
    owner = models.CharField(max_length=150, db_index=True)
    recipient_name = models.CharField(max_length=120)
    bloodgroup = models.CharField(max_length=3, choices=BloodType.choices)
    location = models.CharField(max_length=120)
    urgency = models.CharField(max_length=20, choices=Urgency.choices)
    contact_info = models.CharField(max_length=255)
    units_required = models.PositiveIntegerField(default=1)
    status = models.CharField(max_length=20, choices=RequestStatus.choices, default=RequestStatus.PENDING)
    time_created = models.DateTimeField()
    status_changed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-time_created', '-id']
        indexes = [
            models.Index(fields=['status', 'bloodgroup'], name='request_status_group_idx'),
            models.Index(fields=['owner', '-time_created'], name='request_owner_created_idx'),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(units_required__gte=1), name='bloodrequest_units_positive'),
        ]

    def __str__(self):
        return f"{self.recipient_name} - {self.bloodgroup} ({self.status})"


class DonorInterest(models.Model):
    blood_request = models.ForeignKey(BloodRequest, on_delete=models.CASCADE, related_name='interests')
    donor = models.ForeignKey(dmodels.Donor, on_delete=models.CASCADE, related_name='interests')
    timestamp = models.DateTimeField()

    class Meta:
        ordering = ['blood_request__request_id', 'donor__donor_id']
        constraints = [
            models.UniqueConstraint(fields=['blood_request', 'donor'], name='unique_interest_per_request_donor'),
        ]

    def __str__(self):
        return f"{self.donor} → {self.blood_request}"


class MatchConfirmation(models.Model):
    blood_request = models.OneToOneField(BloodRequest, on_delete=models.CASCADE, related_name='match')
    donor = models.ForeignKey(dmodels.Donor, on_delete=models.CASCADE, related_name='matches')
    confirmed_by = models.CharField(max_length=150)
    confirmed_at = models.DateTimeField()

    class Meta:
        ordering = ['blood_request__request_id', 'donor__donor_id']
        verbose_name = "Match Confirmation"
        verbose_name_plural = "Match Confirmations"

    def __str__(self):
        return f"{self.blood_request.request_id} ⇄ {self.donor.donor_id}"
