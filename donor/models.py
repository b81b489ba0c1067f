from django.db import models

from blood.constants import BloodType


class Donor(models.Model):
    donor_id = models.CharField(max_length=64, unique=True)
    owner = models.CharField(max_length=150, db_index=True)
    name = models.CharField(max_length=120)
    bloodgroup = models.CharField(max_length=3, choices=BloodType.choices)
    location = models.CharField(max_length=120)
    contact_info = models.CharField(max_length=255)

    # Self-reported health checklist
    no_chronic_illness = models.BooleanField(default=False)
    no_recent_surgery = models.BooleanField(default=False)
    eligible_to_donate = models.BooleanField(default=False)
    health_notes = models.TextField(blank=True)

    is_available = models.BooleanField(default=True)
    availability_updated_at = models.DateTimeField(null=True, blank=True)
    donation_history = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name', 'id']
        indexes = [
            models.Index(fields=['bloodgroup', 'location'], name='donor_bloodgroup_location_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.bloodgroup})"
