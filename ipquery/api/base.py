from collections.abc import Sequence

import httpx

from ipquery.client import Client
from ipquery.errors import InvalidInputError
from ipquery.models.request_models import ResponseFormat
from ipquery.util import VALID_FORMATS, is_valid_format, validate_ip_addresses

URI_PREFIX = "/"


class BaseApi:
    """Base for the API endpoints, building and sending validated requests."""

    def __init__(self, client: Client) -> None:
        self.client = client

    async def _get(self, query: Sequence[str] | str, format: str = "json") -> httpx.Response:
        uri = self._prepare_uri(query, format)
        return await self.client.get_http_client().get(uri)

    def _prepare_uri(self, query: Sequence[str] | str, format: str) -> str:
        """Validate the addresses and format, then build the request path.

        Raises:
            InvalidInputError: if an invalid format, an invalid IP address, or too many
                IP addresses are provided.
        """
        validate_ip_addresses(query)

        if isinstance(format, ResponseFormat):
            format = format.value

        if not is_valid_format(format):
            raise InvalidInputError(f'Invalid format "{format}" provided, must be one of {", ".join(VALID_FORMATS)}')

        if not isinstance(query, str):
            query = ",".join(query)

        return f"{URI_PREFIX}{query}?format={format}"
