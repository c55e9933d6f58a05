import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("gyms", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="SubscriptionPlan",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4, editable=False, primary_key=True, serialize=False
                    ),
                ),
                (
                    "plan_id",
                    models.CharField(
                        help_text="Human-stable identifier unique within the gym, e.g. 'monthly_<gym_id>'",
                        max_length=100,
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                ("description", models.CharField(blank=True, max_length=500)),
                (
                    "price",
                    models.PositiveIntegerField(help_text="Price in the smallest currency unit"),
                ),
                ("currency", models.CharField(default="XOF", max_length=3)),
                (
                    "billing_cycle",
                    models.CharField(
                        choices=[
                            ("monthly", "Monthly"),
                            ("quarterly", "Quarterly"),
                            ("semiannually", "Semiannually"),
                            ("annually", "Annually"),
                        ],
                        default="monthly",
                        max_length=20,
                    ),
                ),
                ("is_trial", models.BooleanField(default=False)),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("inactive", "Inactive")],
                        db_index=True,
                        default="inactive",
                        max_length=20,
                    ),
                ),
                (
                    "gym",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="subscriptionplan_set",
                        to="gyms.gym",
                    ),
                ),
            ],
            options={
                "ordering": ["price"],
                "constraints": [
                    models.UniqueConstraint(fields=("gym", "plan_id"), name="unique_plan_id_per_gym"),
                    models.UniqueConstraint(
                        condition=models.Q(("is_trial", True)),
                        fields=("gym",),
                        name="one_trial_plan_per_gym",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "payment_id",
                    models.CharField(
                        help_text="Idempotency key, e.g. 'pay_1718000000000_a1b2c3d4'",
                        max_length=100,
                        unique=True,
                    ),
                ),
                (
                    "gateway_token",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="Invoice token returned by the gateway",
                        max_length=255,
                    ),
                ),
                (
                    "amount",
                    models.PositiveIntegerField(help_text="Amount in the smallest currency unit"),
                ),
                ("currency", models.CharField(default="XOF", max_length=3)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("start_date", models.DateTimeField()),
                ("end_date", models.DateTimeField()),
                ("receipt_url", models.CharField(blank=True, max_length=500)),
                ("payment_method", models.CharField(blank=True, max_length=50)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                (
                    "gym",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payment_set",
                        to="gyms.gym",
                    ),
                ),
                (
                    "subscription",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="billing.subscriptionplan",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
