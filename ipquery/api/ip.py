from collections.abc import Sequence

from ipquery.api.base import BaseApi


class IP(BaseApi):
    """Lookups of IP address information."""

    async def fetch(self, ip: Sequence[str] | str, format: str = "json") -> str:
        """Get information about one or more IP addresses.

        Args:
            ip: one IP address, several comma-separated addresses, or a list of addresses.
            format: response format, one of "json", "xml" or "yaml".

        Returns:
            The response body exactly as sent by the API.
        """
        response = await self._get(ip, format)
        return response.text
