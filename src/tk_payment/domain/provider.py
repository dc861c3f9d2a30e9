"""Payment provider Protocol - what the reconciler needs from the outbound client."""
from typing import Any, Protocol


class PaymentProviderProtocol(Protocol):
    async def create_link(self, form: dict[str, str]) -> dict[str, Any]:
        """POST the link form and return the decoded JSON body.

        Raises ProviderError on network failure, timeout or a non-JSON body.
        """
        ...
