"""
PayDunya payment notification reconciliation.

Turns a (possibly duplicated) gateway notification into consistent
Payment / SubscriptionPlan / Gym state:

    receive_webhook(raw_body, signature)
        -> verify signature
        -> parse_payload / parse_notification (fail fast, no writes)
        -> apply_notification (one transaction, gym row locked first)

Every step is safe to repeat: a completed payment is applied once and
later deliveries only acknowledge it.
"""

import json
import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from urllib.parse import parse_qsl

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from apps.billing.cycles import compute_end
from apps.billing.exceptions import (
    GymNotFound,
    InvalidPayload,
    MissingPaymentId,
    MissingRequiredFields,
    PersistenceError,
    PlanNotFound,
    SignatureError,
    WebhookNotConfigured,
)
from apps.billing.models import Payment, SubscriptionPlan
from apps.billing.signing import verify_signature
from apps.core.logging import bind_contextvars, get_logger
from apps.gyms.models import Gym
from config.settings.base import settings

logger = get_logger(__name__)

STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"

# Reconciliation outcomes
APPLIED = "applied"
DUPLICATE = "duplicate"
IGNORED = "ignored"

# Where the payment identifier may live, in lookup order
PAYMENT_REFERENCE_SOURCES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("token", ("token",)),
    ("invoice.token", ("invoice", "token")),
    ("custom_data.payment_id", ("custom_data", "payment_id")),
)

_BRACKETED = re.compile(r"\[([^\]]*)\]")


@dataclass(frozen=True)
class PaymentReference:
    """A resolved payment identifier and the field it came from."""

    value: str
    source: str


@dataclass(frozen=True)
class PaymentNotification:
    """A validated gateway notification."""

    status: str
    reference: PaymentReference
    candidates: tuple[str, ...]
    gym_id: uuid.UUID
    subscription_id: uuid.UUID
    billing_cycle: str
    amount: int | None = None
    gateway_token: str = ""
    receipt_url: str = ""
    payment_method: str = ""


@dataclass
class ReconciliationResult:
    """What happened to a notification; rendered back to the gateway."""

    payment_id: str
    gym_id: uuid.UUID
    status: str
    outcome: str
    start_date: datetime | None = None
    end_date: datetime | None = None

    def to_response(self) -> dict[str, Any]:
        return {
            "success": True,
            "paymentId": self.payment_id,
            "gymId": str(self.gym_id),
            "status": self.status,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
        }


def signature_check_enabled() -> bool:
    """Signature checks can only be switched off outside production."""
    return settings.is_production or settings.PAYDUNYA_VERIFY_SIGNATURE


def receive_webhook(
    raw_body: bytes, signature: str | None, now: datetime | None = None
) -> ReconciliationResult:
    """
    Verify, parse and apply one webhook delivery.

    Raises:
        WebhookNotConfigured: Signature checks enforced but no key configured
        SignatureError: Signature missing or invalid
        ValidationError: Payload undecodable or missing fields
        NotFoundError: Referenced gym or plan does not exist
        PersistenceError: The store rejected the writes
    """
    if signature_check_enabled():
        if not settings.PAYDUNYA_PRIVATE_KEY:
            logger.error("paydunya_webhook_secret_not_configured")
            raise WebhookNotConfigured()
        if not verify_signature(raw_body, signature, settings.PAYDUNYA_PRIVATE_KEY):
            logger.warning("paydunya_webhook_invalid_signature", has_signature=bool(signature))
            raise SignatureError()
    else:
        logger.warning("paydunya_webhook_signature_check_disabled")

    payload = parse_payload(raw_body)
    notification = parse_notification(payload)

    bind_contextvars(**{"gym.id": str(notification.gym_id)})
    logger.info(
        "paydunya_webhook_received",
        status=notification.status,
        payment_reference=notification.reference.value,
        payment_reference_source=notification.reference.source,
    )

    return apply_notification(notification, now=now)


def parse_payload(raw_body: bytes) -> dict[str, Any]:
    """
    Decode a notification body.

    PayDunya posts either JSON or form-encoded ``data[custom_data][gym_id]=...``
    fields; both decode to the same nested dict.
    """
    try:
        text = raw_body.decode("utf-8").strip()
    except UnicodeDecodeError as e:
        raise InvalidPayload(details="Body is not UTF-8") from e

    if not text:
        raise InvalidPayload(details="Empty body")

    if text.startswith("{"):
        try:
            payload = json.loads(text)
        except ValueError as e:
            raise InvalidPayload(details="Malformed JSON") from e
        if not isinstance(payload, dict):
            raise InvalidPayload(details="Expected a JSON object")
        return payload

    if "=" not in text:
        raise InvalidPayload(details="Unrecognized body format")

    return _parse_form_payload(text)


def _parse_form_payload(text: str) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in parse_qsl(text, keep_blank_values=True):
        head, bracket, rest = key.partition("[")
        path = [head, *_BRACKETED.findall(bracket + rest)] if bracket else [head]

        node = result
        for part in path[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[path[-1]] = value
    return result


def _dig(data: Any, path: tuple[str, ...]) -> Any:
    node = data
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def _text(value: Any) -> str:
    if value is None or isinstance(value, dict | list):
        return ""
    return str(value).strip()


def resolve_payment_reference(data: dict[str, Any]) -> PaymentReference:
    """
    Resolve the payment identifier from the first source that has one.

    Raises:
        MissingPaymentId: If no source yields a value
    """
    for source, path in PAYMENT_REFERENCE_SOURCES:
        value = _text(_dig(data, path))
        if value:
            return PaymentReference(value=value, source=source)
    raise MissingPaymentId()


def _all_references(data: dict[str, Any]) -> tuple[str, ...]:
    values: list[str] = []
    for _source, path in PAYMENT_REFERENCE_SOURCES:
        value = _text(_dig(data, path))
        if value and value not in values:
            values.append(value)
    return tuple(values)


def _parse_uuid(field: str, value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError as e:
        raise InvalidPayload(f"Invalid {field}", details={"field": field}) from e


def _parse_amount(value: Any) -> int | None:
    text = _text(value)
    if not text:
        return None
    try:
        amount = int(float(text))
    except (ValueError, OverflowError) as e:
        raise InvalidPayload("Invalid amount", details={"field": "amount"}) from e
    if amount < 0:
        raise InvalidPayload("Invalid amount", details={"field": "amount"})
    return amount


def parse_notification(payload: dict[str, Any]) -> PaymentNotification:
    """
    Validate a decoded payload and extract the fields reconciliation needs.

    Raises:
        MissingPaymentId: No payment identifier in any known field
        MissingRequiredFields: status / gym_id / subscription_id / billing_cycle absent
        InvalidPayload: Identifiers are not valid UUIDs, or the amount is malformed
    """
    data = payload.get("data")
    if not isinstance(data, dict):
        data = {}

    reference = resolve_payment_reference(data)

    custom_data = data.get("custom_data")
    if not isinstance(custom_data, dict):
        custom_data = {}

    required = {
        "status": _text(data.get("status")),
        "gym_id": _text(custom_data.get("gym_id")),
        "subscription_id": _text(custom_data.get("subscription_id")),
        "billing_cycle": _text(custom_data.get("billing_cycle")),
    }
    missing = [name for name, value in required.items() if not value]
    if missing:
        logger.warning("paydunya_webhook_missing_fields", missing_fields=missing)
        raise MissingRequiredFields(missing)

    amount = _parse_amount(custom_data.get("amount"))
    if amount is None:
        amount = _parse_amount(_dig(data, ("invoice", "total_amount")))

    return PaymentNotification(
        status=required["status"].lower(),
        reference=reference,
        candidates=_all_references(data),
        gym_id=_parse_uuid("gym_id", required["gym_id"]),
        subscription_id=_parse_uuid("subscription_id", required["subscription_id"]),
        billing_cycle=required["billing_cycle"],
        amount=amount,
        gateway_token=_text(data.get("token")) or _text(_dig(data, ("invoice", "token"))),
        receipt_url=_text(data.get("receipt_url")),
        payment_method=_text(data.get("payment_method")),
    )


def apply_notification(
    notification: PaymentNotification, now: datetime | None = None
) -> ReconciliationResult:
    """
    Apply a validated notification atomically.

    The gym row is locked before any payment or plan is touched, so
    deliveries and admin actions on the same gym are serialized while
    different gyms proceed in parallel.
    """
    now = now or timezone.now()

    if notification.status not in (STATUS_COMPLETED, STATUS_FAILED):
        logger.warning("paydunya_webhook_unhandled_status", status=notification.status)
        return ReconciliationResult(
            payment_id=notification.reference.value,
            gym_id=notification.gym_id,
            status=notification.status,
            outcome=IGNORED,
        )

    try:
        with transaction.atomic():
            gym = _lock_gym(notification.gym_id)
            if notification.status == STATUS_COMPLETED:
                return _apply_completed(gym, notification, now)
            return _apply_failed(gym, notification)
    except DatabaseError as e:
        logger.exception(
            "paydunya_reconciliation_persistence_error",
            payment_reference=notification.reference.value,
        )
        raise PersistenceError() from e


def _lock_gym(gym_id: uuid.UUID) -> Gym:
    try:
        return Gym.objects.select_for_update().get(pk=gym_id)
    except Gym.DoesNotExist:
        logger.warning("paydunya_webhook_gym_not_found")
        raise GymNotFound()


def _find_payment(gym: Gym, candidates: tuple[str, ...]) -> Payment | None:
    """
    Find the payment a notification refers to.

    Each candidate is matched against our payment_id first, then against the
    gateway's invoice token.
    """
    query = Q()
    for value in candidates:
        query |= Q(payment_id=value) | Q(gateway_token=value)
    matches = list(Payment.objects.select_for_update().filter(query))

    payment = None
    for value in candidates:
        payment = next((p for p in matches if p.payment_id == value), None)
        if payment is not None:
            break
    if payment is None:
        for value in candidates:
            payment = next((p for p in matches if p.gateway_token == value), None)
            if payment is not None:
                break

    if payment is not None and payment.gym_id != gym.pk:
        logger.warning(
            "paydunya_webhook_payment_gym_mismatch",
            payment_id=payment.payment_id,
            payment_gym_id=str(payment.gym_id),
        )
        raise InvalidPayload("Payment does not belong to gym")
    return payment


def _get_plan(gym: Gym, subscription_id: uuid.UUID) -> SubscriptionPlan:
    try:
        return SubscriptionPlan.objects.get(pk=subscription_id, gym=gym)
    except SubscriptionPlan.DoesNotExist:
        logger.warning("paydunya_webhook_plan_not_found", subscription_id=str(subscription_id))
        raise PlanNotFound()


def _apply_completed(
    gym: Gym, notification: PaymentNotification, now: datetime
) -> ReconciliationResult:
    payment = _find_payment(gym, notification.candidates)

    if payment is not None and payment.is_completed:
        logger.info("paydunya_webhook_duplicate", payment_id=payment.payment_id)
        return _result(gym, payment, DUPLICATE)

    if payment is None:
        plan = _get_plan(gym, notification.subscription_id)
        payment, created = _insert_completed_payment(gym, plan, notification, now)
        if not created:
            logger.info("paydunya_webhook_duplicate", payment_id=payment.payment_id)
            return _result(gym, payment, DUPLICATE)
    else:
        plan = payment.subscription
        if plan.pk != notification.subscription_id:
            logger.warning(
                "paydunya_webhook_plan_mismatch",
                payment_id=payment.payment_id,
                notified_subscription_id=str(notification.subscription_id),
            )
        payment.status = Payment.Status.COMPLETED
        payment.receipt_url = notification.receipt_url or payment.receipt_url
        payment.payment_method = notification.payment_method or payment.payment_method
        payment.gateway_token = payment.gateway_token or notification.gateway_token
        payment.paid_at = now
        payment.save(
            update_fields=[
                "status",
                "receipt_url",
                "payment_method",
                "gateway_token",
                "paid_at",
                "updated_at",
            ]
        )

    if plan.status != SubscriptionPlan.Status.ACTIVE:
        plan.status = SubscriptionPlan.Status.ACTIVE
        plan.save(update_fields=["status", "updated_at"])

    gym.subscription_active = True
    gym.current_subscription = plan
    gym.current_subscription_start = payment.start_date
    gym.current_subscription_end = payment.end_date
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
        "paydunya_payment_completed",
        payment_id=payment.payment_id,
        subscription_id=str(plan.pk),
        end_date=payment.end_date.isoformat(),
    )
    return _result(gym, payment, APPLIED)


def _insert_completed_payment(
    gym: Gym,
    plan: SubscriptionPlan,
    notification: PaymentNotification,
    now: datetime,
) -> tuple[Payment, bool]:
    """
    Record a completed payment that has no pending row (e.g. created outside checkout).

    The window starts at first application and is never recomputed.
    """
    try:
        with transaction.atomic():
            payment = Payment.objects.create(
                gym=gym,
                subscription=plan,
                payment_id=notification.reference.value,
                gateway_token=notification.gateway_token,
                amount=notification.amount if notification.amount is not None else plan.price,
                currency=plan.currency,
                status=Payment.Status.COMPLETED,
                start_date=now,
                end_date=compute_end(notification.billing_cycle, now),
                receipt_url=notification.receipt_url,
                payment_method=notification.payment_method,
                paid_at=now,
            )
    except IntegrityError:
        return Payment.objects.select_for_update().get(payment_id=notification.reference.value), False
    return payment, True


def _apply_failed(gym: Gym, notification: PaymentNotification) -> ReconciliationResult:
    payment = _find_payment(gym, notification.candidates)

    if payment is None:
        logger.info("paydunya_webhook_failed_unknown_payment")
        return ReconciliationResult(
            payment_id=notification.reference.value,
            gym_id=gym.pk,
            status=STATUS_FAILED,
            outcome=IGNORED,
        )

    if payment.is_completed:
        # Completed payments are never downgraded
        logger.warning("paydunya_webhook_failed_after_completed", payment_id=payment.payment_id)
        return _result(gym, payment, IGNORED, status=STATUS_FAILED)

    if payment.status == Payment.Status.FAILED:
        return _result(gym, payment, DUPLICATE)

    payment.status = Payment.Status.FAILED
    payment.save(update_fields=["status", "updated_at"])
    logger.info("paydunya_payment_failed", payment_id=payment.payment_id)
    return _result(gym, payment, APPLIED)


def _result(
    gym: Gym, payment: Payment, outcome: str, status: str | None = None
) -> ReconciliationResult:
    return ReconciliationResult(
        payment_id=payment.payment_id,
        gym_id=gym.pk,
        status=status or payment.status,
        outcome=outcome,
        start_date=payment.start_date,
        end_date=payment.end_date,
    )
