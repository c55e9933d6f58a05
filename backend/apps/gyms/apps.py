"""Gyms app configuration."""

from django.apps import AppConfig


class GymsConfig(AppConfig):
    """Configuration for gyms app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.gyms"
