from collections.abc import Mapping, Sequence
from ipaddress import ip_address
from typing import Any

from ipquery.errors import InvalidInputError
from ipquery.models.request_models import ResponseFormat

MAX_AMOUNT_OF_IPS = 10_000

VALID_FORMATS: tuple[str, ...] = tuple(f.value for f in ResponseFormat)

DEFAULT_THROTTLE_OPTIONS: dict[str, Any] = {
    "id": "ipquery",
    "policy": "fixed_window",
    "limit": 2,
    "interval": "3 seconds",
}


def is_valid_format(value: str) -> bool:
    """Return True only for an exact, case-sensitive match of a supported format."""
    return value in VALID_FORMATS


def is_valid_ip(value: Any) -> bool:
    """Return True if value is a textual IPv4 or IPv6 address literal.

    Networks (CIDR), hostnames and scoped IPv6 addresses ("fe80::1%eth0") are rejected.
    """
    if not isinstance(value, str) or "%" in value:
        return False

    try:
        ip_address(value)
    except ValueError:
        return False

    return True


def validate_ip_addresses(ips: Sequence[str] | str) -> None:
    """Validate a batch of IP addresses before a request is built.

    A single string holding comma-separated addresses is split into its parts first.

    Raises:
        InvalidInputError: if the batch is empty, too large, or holds an invalid address.
    """
    if isinstance(ips, str):
        ips = ips.split(",") if "," in ips else [ips]

    num_ips = len(ips)

    if num_ips == 0:
        raise InvalidInputError("At least one IP address must be provided")

    if num_ips > MAX_AMOUNT_OF_IPS:
        raise InvalidInputError(
            f"Too many IP addresses provided. The limit is {MAX_AMOUNT_OF_IPS}, {num_ips} provided"
        )

    for address in ips:
        if not is_valid_ip(address):
            raise InvalidInputError(f"Invalid IP address: {address}")


def validated_throttle_options(throttle_options: Mapping[str, Any] | None) -> dict[str, Any]:
    """Fill missing (or None) throttle fields with the defaults, keeping everything supplied."""
    options = dict(throttle_options or {})
    for key, default in DEFAULT_THROTTLE_OPTIONS.items():
        if options.get(key) is None:
            options[key] = default
    return options
