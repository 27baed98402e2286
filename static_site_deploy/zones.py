"""Route 53 hosted zone lookup."""

import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from .errors import RemoteCallError, ZoneNotFoundError

logger = logging.getLogger(__name__)


def find_zone_id(route53_client: Any, zone_name: str) -> str:
    """
    Finds the ID of the hosted zone with the given name.

    ListHostedZonesByName returns zones in name order starting at `zone_name`,
    so the first result is only ours if its name matches exactly.

    Args:
        route53_client (boto3.client): An initialized Route 53 client.
        zone_name (str): The zone name, e.g. `example.com`.

    Returns:
        str: The bare zone ID, e.g. `Z0123456789ABC` (without the `/hostedzone/` prefix).

    Raises:
        ZoneNotFoundError: No hosted zone has that name.
    """
    wanted: str = zone_name.rstrip(".").lower()
    try:
        response = route53_client.list_hosted_zones_by_name(DNSName=wanted, MaxItems="1")
    except (ClientError, BotoCoreError) as e:
        raise RemoteCallError("ListHostedZonesByName", str(e)) from e

    zones = response.get("HostedZones", [])
    if not zones or zones[0]["Name"].rstrip(".").lower() != wanted:
        raise ZoneNotFoundError(zone_name)

    zone_id: str = zones[0]["Id"].split("/")[-1]
    logger.info(f"Found zone: {zone_id}")
    return zone_id
