""" Kafka Connect REST API client.
"""

import logging
from abc import ABC, abstractmethod

import httpx

from konnektor.config import get_rest_timeout
from konnektor.exceptions import ConnectRestException
from konnektor.models.connect import RunningConnectorSnapshot

logger = logging.getLogger(__name__)


class ConnectApi(ABC):
    """ Operations on the connectors of one Connect cluster's REST API.

    Every call addresses the cluster by host and port, raises
    ConnectRestException on failure and never retries.
    """

    @abstractmethod
    async def list(self, host, port):
        """ Names of the connectors the cluster currently runs.
        """

    @abstractmethod
    async def create_or_update(self, host, port, name, config):
        """ Create the connector or replace its configuration.
        """

    @abstractmethod
    async def status(self, host, port, name):
        """ Return the RunningConnectorSnapshot of a connector.
        """

    @abstractmethod
    async def delete(self, host, port, name):
        pass

    @abstractmethod
    async def pause(self, host, port, name):
        pass

    @abstractmethod
    async def resume(self, host, port, name):
        pass


class ConnectApiClient(ConnectApi):
    """ Async HTTP implementation of ConnectApi.
    """

    def __init__(self, timeout=None, scheme="http", transport=None):
        self.timeout = timeout if timeout is not None else get_rest_timeout()
        self.scheme = scheme
        self.transport = transport

    def _get_headers(self):
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _request(self, method, host, port, path, data=None):
        """ Make a request and return the decoded JSON body, if any.
        """
        url = f"{self.scheme}://{host}:{port}{path}"
        logger.debug(f"{method} {url}")
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.request(
                    method, url, headers=self._get_headers(), json=data
                )
            except httpx.TransportError as e:
                raise ConnectRestException(method, path, 0, type(e).__name__, str(e)) from e

        if response.is_error:
            raise ConnectRestException(
                method, path, response.status_code, response.reason_phrase, _error_body(response)
            )
        return response.json() if response.content else None

    async def list(self, host, port):
        return await self._request("GET", host, port, "/connectors")

    async def create_or_update(self, host, port, name, config):
        return await self._request("PUT", host, port, f"/connectors/{name}/config", config)

    async def status(self, host, port, name):
        body = await self._request("GET", host, port, f"/connectors/{name}/status")
        return RunningConnectorSnapshot.model_validate(body)

    async def delete(self, host, port, name):
        await self._request("DELETE", host, port, f"/connectors/{name}")

    async def pause(self, host, port, name):
        await self._request("PUT", host, port, f"/connectors/{name}/pause")

    async def resume(self, host, port, name):
        await self._request("PUT", host, port, f"/connectors/{name}/resume")


def _error_body(response):
    """ Kafka Connect reports errors as {"error_code": ..., "message": ...}.
    """
    try:
        return response.json().get("message", response.text)
    except (ValueError, AttributeError):
        return response.text
