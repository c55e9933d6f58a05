"""
Billing services - trial, catalog, checkout, admin overrides and entitlement.

Gateway calls are isolated in PaydunyaClient and injected for testability.
External calls must NOT be inside database transactions.
"""

import secrets
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from django.db import DatabaseError, transaction
from django.db.models import Q
from django.utils import timezone

from apps.billing.catalog import (
    ADMIN_ACTIVATION_DAYS,
    ADMIN_TEMPLATE,
    DEFAULT_CATALOG,
    PlanTemplate,
)
from apps.billing.cycles import compute_end
from apps.billing.exceptions import (
    GatewayResponseInvalid,
    GymNotFound,
    PaymentNotFound,
    PersistenceError,
    PlanNotFound,
)
from apps.billing.models import Payment, SubscriptionPlan
from apps.billing.paydunya_client import (
    PAYDUNYA_SUCCESS_CODE,
    Customer,
    PaydunyaClient,
    get_paydunya_client,
)
from apps.billing.reconciliation import (
    ReconciliationResult,
    apply_notification,
    parse_notification,
)
from apps.core.exceptions import ValidationError
from apps.core.logging import get_logger
from apps.gyms.models import Gym
from config.settings.base import settings

logger = get_logger(__name__)


def _lock_gym(gym_id: uuid.UUID) -> Gym:
    try:
        return Gym.objects.select_for_update().get(pk=gym_id)
    except Gym.DoesNotExist:
        raise GymNotFound()


# --- Trial ---


def start_trial(gym: Gym, now: datetime | None = None) -> Gym:
    """
    Open the free trial for a newly created gym.

    An open trial grants access, so the gym is flagged active as well.
    """
    now = now or timezone.now()
    gym.trial_end_date = now + timedelta(days=settings.TRIAL_DURATION_DAYS)
    gym.trial_used = False
    gym.subscription_active = True
    gym.save(update_fields=["trial_end_date", "trial_used", "subscription_active", "updated_at"])

    logger.info("trial_started", **{"gym.id": str(gym.id)}, trial_end=gym.trial_end_date.isoformat())
    return gym


def extend_trial(gym_id: uuid.UUID, days: int, now: datetime | None = None) -> Gym:
    """
    Extend a gym's trial by ``days``.

    Extensions accumulate: the new end is computed from the later of now and
    the current trial end. The current paid subscription pointer is cleared.
    """
    if days < 1:
        raise ValidationError("days must be at least 1", details={"days": days})

    now = now or timezone.now()

    with transaction.atomic():
        gym = _lock_gym(gym_id)

        base = max(now, gym.trial_end_date) if gym.trial_end_date else now
        gym.trial_end_date = base + timedelta(days=days)
        gym.trial_used = False
        gym.subscription_active = False
        gym.current_subscription = None
        gym.current_subscription_start = None
        gym.current_subscription_end = None
        gym.save(
            update_fields=[
                "trial_end_date",
                "trial_used",
                "subscription_active",
                "current_subscription",
                "current_subscription_start",
                "current_subscription_end",
                "updated_at",
            ]
        )

    logger.info(
        "trial_extended",
        **{"gym.id": str(gym.id)},
        days=days,
        trial_end=gym.trial_end_date.isoformat(),
    )
    return gym


# --- Catalog ---


@dataclass
class ProvisionedCatalog:
    trial_plan: SubscriptionPlan | None
    paid_plans: list[SubscriptionPlan] = field(default_factory=list)
    created: int = 0


def _get_or_create_plan(gym: Gym, template: PlanTemplate) -> tuple[SubscriptionPlan, bool]:
    return SubscriptionPlan.objects.get_or_create(
        gym=gym,
        plan_id=template.plan_id_for(gym.id),
        defaults={
            "name": template.name,
            "description": template.description,
            "price": template.price,
            "currency": settings.BILLING_CURRENCY,
            "billing_cycle": template.billing_cycle,
            "is_trial": template.is_trial,
            "status": template.status,
        },
    )


def provision_catalog(
    gym: Gym, templates: tuple[PlanTemplate, ...] = DEFAULT_CATALOG
) -> ProvisionedCatalog:
    """
    Create the gym's subscription plans from templates.

    Safe to call repeatedly: existing plans (matched on plan_id) are kept as-is.
    """
    result = ProvisionedCatalog(trial_plan=None)

    for template in templates:
        plan, created = _get_or_create_plan(gym, template)
        if created:
            result.created += 1
        if plan.is_trial:
            result.trial_plan = plan
        else:
            result.paid_plans.append(plan)

    if result.created:
        logger.info("catalog_provisioned", **{"gym.id": str(gym.id)}, plans_created=result.created)
    return result


# --- Checkout ---


@dataclass
class CheckoutResult:
    checkout_url: str
    payment_id: str


def generate_payment_id(now: datetime | None = None) -> str:
    """Return a new idempotency key: ``pay_<epoch-ms>_<8 hex chars>``."""
    millis = int(now.timestamp() * 1000) if now else int(time.time() * 1000)
    return f"pay_{millis}_{secrets.token_hex(4)}"


def initiate_checkout(
    gym_id: uuid.UUID,
    subscription_id: uuid.UUID,
    purchaser: Customer,
    client: PaydunyaClient | None = None,
    now: datetime | None = None,
) -> CheckoutResult:
    """
    Start a payment for one of the gym's plans.

    Creates the gateway invoice first, then records a pending Payment
    carrying the entitlement window the payment will grant.

    Raises:
        PlanNotFound: If the plan does not exist or belongs to another gym
        GatewayError: If the gateway is unreachable or rejects the invoice
        PersistenceError: If the pending Payment cannot be stored
    """
    try:
        plan = SubscriptionPlan.objects.select_related("gym").get(pk=subscription_id, gym_id=gym_id)
    except SubscriptionPlan.DoesNotExist:
        logger.warning(
            "checkout_plan_not_found",
            **{"gym.id": str(gym_id)},
            subscription_id=str(subscription_id),
        )
        raise PlanNotFound()

    now = now or timezone.now()
    payment_id = generate_payment_id(now)

    metadata = {
        "gym_id": str(gym_id),
        "subscription_id": str(plan.id),
        "billing_cycle": plan.billing_cycle,
        "payment_id": payment_id,
        "amount": plan.price,
    }

    client = client or get_paydunya_client()
    invoice = client.create_invoice(amount=plan.price, customer=purchaser, metadata=metadata)

    try:
        Payment.objects.create(
            gym_id=gym_id,
            subscription=plan,
            payment_id=payment_id,
            gateway_token=invoice.token,
            amount=plan.price,
            currency=plan.currency,
            status=Payment.Status.PENDING,
            start_date=now,
            end_date=compute_end(plan.billing_cycle, now),
        )
    except DatabaseError as e:
        logger.exception("checkout_payment_persist_failed", payment_id=payment_id)
        raise PersistenceError() from e

    logger.info(
        "checkout_created",
        **{"gym.id": str(gym_id)},
        payment_id=payment_id,
        subscription_id=str(plan.id),
        amount=plan.price,
    )
    return CheckoutResult(checkout_url=invoice.url, payment_id=payment_id)


# --- Gateway confirmation ---


def confirm_payment(
    payment_id: str,
    gym_id: uuid.UUID,
    client: PaydunyaClient | None = None,
) -> ReconciliationResult:
    """
    Pull an invoice's status from the gateway and reconcile it.

    Used where webhook delivery is unavailable; the result is the same as
    receiving the corresponding webhook, including idempotence.
    """
    payment = (
        Payment.objects.filter(gym_id=gym_id)
        .filter(Q(payment_id=payment_id) | Q(gateway_token=payment_id))
        .select_related("subscription")
        .first()
    )
    if payment is None:
        raise PaymentNotFound()

    client = client or get_paydunya_client()
    response = client.confirm_invoice(payment.gateway_token or payment.payment_id)

    if response.get("response_code") != PAYDUNYA_SUCCESS_CODE:
        logger.warning(
            "payment_confirmation_rejected",
            payment_id=payment.payment_id,
            response_code=response.get("response_code"),
        )
        raise GatewayResponseInvalid(details=response.get("response_text") or None)

    notification = parse_notification({"data": _confirmation_data(payment, response)})
    return apply_notification(notification)


def _confirmation_data(payment: Payment, response: dict[str, Any]) -> dict[str, Any]:
    """Shape a confirm-invoice response like a webhook ``data`` object."""
    custom_data = response.get("custom_data")
    custom_data = dict(custom_data) if isinstance(custom_data, dict) else {}
    custom_data.setdefault("amount", payment.amount)
    # The local payment is authoritative for which gym and plan are paid
    custom_data.update(
        {
            "gym_id": str(payment.gym_id),
            "subscription_id": str(payment.subscription_id),
            "billing_cycle": payment.subscription.billing_cycle,
            "payment_id": payment.payment_id,
        }
    )

    return {
        "status": response.get("status") or "",
        "token": payment.gateway_token,
        "invoice": response.get("invoice") if isinstance(response.get("invoice"), dict) else {},
        "custom_data": custom_data,
        "receipt_url": response.get("receipt_url") or "",
        "payment_method": response.get("payment_method") or "",
    }


# --- Admin overrides ---


def admin_activate(gym_id: uuid.UUID, actor=None, now: datetime | None = None) -> Gym:
    """
    Grant a gym a paid window without going through the gateway.

    Reuses the gym's admin tier plan (creating it on first use) and records
    a completed Payment so the window has the same history as a paid one.
    """
    now = now or timezone.now()

    with transaction.atomic():
        gym = _lock_gym(gym_id)

        plan, _created = _get_or_create_plan(gym, ADMIN_TEMPLATE)
        if plan.status != SubscriptionPlan.Status.ACTIVE:
            plan.status = SubscriptionPlan.Status.ACTIVE
            plan.save(update_fields=["status", "updated_at"])

        end = now + timedelta(days=ADMIN_ACTIVATION_DAYS)
        payment = Payment.objects.create(
            gym=gym,
            subscription=plan,
            payment_id=f"admin_{uuid.uuid4().hex}",
            amount=plan.price,
            currency=plan.currency,
            status=Payment.Status.COMPLETED,
            start_date=now,
            end_date=end,
            payment_method="admin",
            paid_at=now,
        )

        if gym.is_trial_open(now):
            gym.trial_used = True
        gym.subscription_active = True
        gym.current_subscription = plan
        gym.current_subscription_start = now
        gym.current_subscription_end = end
        gym.save(
            update_fields=[
                "trial_used",
                "subscription_active",
                "current_subscription",
                "current_subscription_start",
                "current_subscription_end",
                "updated_at",
            ]
        )

    logger.info(
        "admin_subscription_activated",
        **{"gym.id": str(gym.id)},
        actor_id=getattr(actor, "pk", None),
        payment_id=payment.payment_id,
        end_date=end.isoformat(),
    )
    return gym


def admin_deactivate(gym_id: uuid.UUID, actor=None) -> Gym:
    """Revoke a gym's paid window. Plans and payments are left untouched."""
    with transaction.atomic():
        gym = _lock_gym(gym_id)
        gym.subscription_active = False
        gym.current_subscription = None
        gym.current_subscription_start = None
        gym.current_subscription_end = None
        gym.save(
            update_fields=[
                "subscription_active",
                "current_subscription",
                "current_subscription_start",
                "current_subscription_end",
                "updated_at",
            ]
        )

    logger.info(
        "admin_subscription_deactivated",
        **{"gym.id": str(gym.id)},
        actor_id=getattr(actor, "pk", None),
    )
    return gym


# --- Entitlement ---


def is_entitled(gym: Gym, now: datetime | None = None) -> bool:
    """An open trial or a running paid window grants access."""
    now = now or timezone.now()
    return gym.is_trial_open(now) or gym.has_paid_window(now)


def _open_trial(now: datetime) -> Q:
    return Q(trial_end_date__gt=now, trial_used=False)


def _paid_window(now: datetime) -> Q:
    return Q(subscription_active=True, current_subscription_end__gt=now)


@dataclass
class SweepResult:
    expired_trials: int = 0
    expired_subscriptions: int = 0

    @property
    def total(self) -> int:
        return self.expired_trials + self.expired_subscriptions


def expire_lapsed_entitlements(now: datetime | None = None, dry_run: bool = False) -> SweepResult:
    """
    Clear the active flag on gyms whose trial and paid window have both lapsed.

    The lapse condition is part of the UPDATE's WHERE clause, so a gym
    extended concurrently by a webhook no longer matches and is left alone.
    """
    now = now or timezone.now()

    lapsed = Gym.objects.filter(subscription_active=True).exclude(_open_trial(now)).exclude(
        current_subscription_end__gt=now
    )
    lapsed_trials = lapsed.filter(current_subscription_end__isnull=True)
    lapsed_subscriptions = lapsed.filter(current_subscription_end__isnull=False)

    if dry_run:
        return SweepResult(
            expired_trials=lapsed_trials.count(),
            expired_subscriptions=lapsed_subscriptions.count(),
        )

    cleared = {
        "subscription_active": False,
        "current_subscription": None,
        "current_subscription_start": None,
        "current_subscription_end": None,
        "updated_at": now,
    }
    result = SweepResult(
        expired_trials=lapsed_trials.update(**cleared),
        expired_subscriptions=lapsed_subscriptions.update(**cleared),
    )

    if result.total:
        logger.info(
            "entitlements_expired",
            expired_trials=result.expired_trials,
            expired_subscriptions=result.expired_subscriptions,
        )
    return result


@dataclass
class AdminStats:
    total_gyms: int
    active_subscriptions: int
    trial_gyms: int
    expired_subscriptions: int


def get_admin_stats(now: datetime | None = None) -> AdminStats:
    """Platform-wide subscription counters for the admin dashboard."""
    now = now or timezone.now()
    gyms = Gym.objects.all()

    return AdminStats(
        total_gyms=gyms.count(),
        active_subscriptions=gyms.filter(_paid_window(now)).count(),
        trial_gyms=gyms.filter(_open_trial(now)).exclude(_paid_window(now)).count(),
        expired_subscriptions=gyms.filter(
            subscription_active=True, current_subscription_end__lte=now
        ).count(),
    )
