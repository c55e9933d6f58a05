"""
Gym services - onboarding a new tenant.

create_gym is the single provisioning path: every gym starts with the
same trial and plan catalog.
"""

from datetime import datetime

from django.db import transaction

from apps.billing.services import ProvisionedCatalog, provision_catalog, start_trial
from apps.core.logging import get_logger
from apps.gyms.models import Gym, Member

logger = get_logger(__name__)


def provision_gym(gym: Gym, now: datetime | None = None) -> ProvisionedCatalog:
    """
    Give a gym its trial and subscription plans.

    Re-running it neither restarts the trial nor duplicates plans.
    """
    if gym.trial_end_date is None:
        start_trial(gym, now=now)
    return provision_catalog(gym)


def create_gym(
    owner,
    name: str,
    address: str = "",
    city: str = "",
    phone: str = "",
    now: datetime | None = None,
) -> Gym:
    """
    Create a gym owned by ``owner`` with its trial and catalog in place.

    Runs in one transaction; a failure leaves no partially provisioned gym.
    """
    with transaction.atomic():
        gym = Gym.objects.create(
            name=name,
            address=address,
            city=city,
            phone=phone,
            owner=owner,
        )
        Member.objects.create(gym=gym, user=owner, role=Member.Role.OWNER)
        provision_gym(gym, now=now)

    logger.info("gym_created", **{"gym.id": str(gym.id), "usr.id": owner.pk})
    return gym
