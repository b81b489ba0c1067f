from django.db import models

from blood.constants import UserRole


class UserProfile(models.Model):
    principal = models.CharField(max_length=150, unique=True)
    name = models.CharField(max_length=120)
    role = models.CharField(max_length=10, choices=UserRole.choices, default=UserRole.REQUESTER)
    contact_info = models.CharField(max_length=255, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['principal']
        verbose_name = "User Profile"
        verbose_name_plural = "User Profiles"

    def __str__(self):
        return f"{self.name} ({self.role})"
