"""OSAC Provider - Connection configuration for a fulfillment service."""

from functools import cached_property
from types import TracebackType
from typing import Self

from pydantic import BaseModel, ConfigDict, SecretStr

from osac_provisioner.core.client import FulfillmentClient


class TokenAuth(BaseModel):
    """Bearer token authentication for the fulfillment API."""

    token: SecretStr


class OSACProvider(BaseModel):
    """Connection configuration for an OSAC fulfillment service.

    For normal use, provide an endpoint and optionally a token. For testing,
    use the `from_client` classmethod to inject a client.

    Examples:
        # TLS endpoint with a bearer token
        provider = OSACProvider(
            endpoint="fulfillment.example.com:443",
            auth=TokenAuth(token="my-token"),
        )

        # Injected client
        provider = OSACProvider.from_client(MagicMock())

    A client the provider creates itself is closed by ``close()`` or on
    leaving a ``with`` block; injected clients belong to the caller.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    endpoint: str | None = None
    auth: TokenAuth | None = None
    insecure: bool = False
    plaintext: bool = False

    # Injected client (for testing)
    _injected_client: FulfillmentClient | None = None

    @classmethod
    def from_client(cls, client: FulfillmentClient) -> Self:
        """Create a provider with an injected client."""
        provider = cls.model_construct()
        provider._injected_client = client
        return provider

    @property
    def base_url(self) -> str:
        """Endpoint as a URL; bare ``host:port`` gets a scheme from ``plaintext``."""
        if self.endpoint is None:
            raise ValueError("Either provide an endpoint, or use OSACProvider.from_client()")
        if "://" in self.endpoint:
            return self.endpoint.rstrip("/")
        scheme = "http" if self.plaintext else "https"
        return f"{scheme}://{self.endpoint.rstrip('/')}"

    @cached_property
    def client(self) -> FulfillmentClient:
        """Get the fulfillment client."""
        if self._injected_client is not None:
            return self._injected_client

        token = self.auth.token.get_secret_value() if self.auth is not None else None
        return FulfillmentClient(self.base_url, token=token, verify=not self.insecure)

    def close(self) -> None:
        """Close the HTTP client if this provider created one."""
        client = self.__dict__.pop("client", None)
        if client is not None and client is not self._injected_client:
            client.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
