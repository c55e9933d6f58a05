"""Admin configuration for gyms app."""

from django.contrib import admin

from apps.gyms.models import Gym, Member


class MemberInline(admin.TabularInline):
    model = Member
    extra = 0
    raw_id_fields = ["user"]


@admin.register(Gym)
class GymAdmin(admin.ModelAdmin):
    """Admin for Gym model."""

    list_display = [
        "name",
        "city",
        "owner",
        "subscription_active",
        "trial_end_date",
        "current_subscription_end",
        "created_at",
    ]
    list_filter = ["subscription_active", "trial_used"]
    search_fields = ["name", "city", "owner__email"]
    readonly_fields = ["id", "created_at", "updated_at"]
    raw_id_fields = ["owner", "current_subscription"]
    inlines = [MemberInline]
    ordering = ["-created_at"]
