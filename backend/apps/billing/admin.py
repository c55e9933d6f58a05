"""Admin configuration for billing app."""

from django.contrib import admin

from apps.billing.models import Payment, SubscriptionPlan


@admin.register(SubscriptionPlan)
class SubscriptionPlanAdmin(admin.ModelAdmin):
    """Admin for SubscriptionPlan model."""

    list_display = ["name", "gym", "plan_id", "price", "currency", "billing_cycle", "is_trial", "status"]
    list_filter = ["billing_cycle", "is_trial", "status"]
    search_fields = ["plan_id", "name", "gym__name"]
    readonly_fields = ["id", "plan_id", "created_at", "updated_at"]
    ordering = ["gym", "price"]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    """Admin for Payment model. Payments are history; they are read-only here."""

    list_display = ["payment_id", "gym", "subscription", "amount", "currency", "status", "end_date", "created_at"]
    list_filter = ["status", "payment_method"]
    search_fields = ["payment_id", "gateway_token", "gym__name"]
    readonly_fields = [field.name for field in Payment._meta.fields]
    ordering = ["-created_at"]

    def has_delete_permission(self, request, obj=None) -> bool:
        return False
