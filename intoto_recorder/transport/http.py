"""Generic HTTP transport — POSTs the serialized link document verbatim.

The body is the canonical JSON of the whole document (signatures included).
The ``Content-Type`` is the form-encoded marker existing link collectors
expect, even though the body is raw JSON text.  Any 2xx response counts as
delivered; the response body is only logged.  There is no retry.
"""

from __future__ import annotations

import logging

import httpx

from intoto_recorder.errors import TransportFailure
from intoto_recorder.models.link import LinkDocument
from intoto_recorder.models.outcome import SubmitOutcome

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/x-www-form-urlencoded"
DEFAULT_TIMEOUT_SECONDS = 30.0


def post_payload(
    url: str,
    payload: str,
    *,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    client: httpx.Client | None = None,
) -> httpx.Response:
    """POST *payload* to *url* once and return the successful response.

    Parameters
    ----------
    client:
        Optional pre-built client (tests pass one with ``httpx.MockTransport``).
        When omitted a short-lived client is created and closed.

    Raises
    ------
    TransportFailure
        On an invalid URL, connection errors, timeouts or a non-2xx status.
    """
    headers = {"Content-Type": CONTENT_TYPE}
    try:
        if client is None:
            with httpx.Client(timeout=timeout_seconds) as own_client:
                response = own_client.post(url, content=payload, headers=headers)
        else:
            response = client.post(
                url, content=payload, headers=headers, timeout=timeout_seconds
            )
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise TransportFailure(f"Couldn't submit link metadata to {url}: {exc}") from exc

    if not response.is_success:
        raise TransportFailure(
            f"Link submission to {url} failed with HTTP {response.status_code}: "
            f"{response.text[:200]}"
        )

    logger.debug("Response from %s: %s", url, response.text)
    return response


class HttpTransport:
    """Submits link documents to a plain ``http``/``https`` endpoint.

    Parameters
    ----------
    uri:
        Endpoint receiving the POST.
    timeout_seconds:
        Upper bound on connect, read and write time for the request.
    client:
        Optional ``httpx.Client`` to send with.
    """

    def __init__(
        self,
        uri: str,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.Client | None = None,
    ) -> None:
        self._uri = uri
        self._timeout = timeout_seconds
        self._client = client

    @property
    def transport_name(self) -> str:
        return "http"

    @property
    def uri(self) -> str:
        return self._uri

    def submit(self, document: LinkDocument) -> SubmitOutcome:
        response = post_payload(
            self._uri,
            document.to_json(),
            timeout_seconds=self._timeout,
            client=self._client,
        )
        logger.info(
            "Submitted link %s to %s (HTTP %d)",
            document.signed.name,
            self._uri,
            response.status_code,
        )
        return SubmitOutcome(
            transport=self.transport_name,
            target=self._uri,
            status_code=response.status_code,
        )
