"""
NAD API Client

Posts enrollment requests to the NAD alias directory.

Responsibility:
    - Send JSON payloads with the bearer token
    - Retry connection failures with exponential backoff
    - Turn NAD responses into an alias or an EnrollmentRejectedError

Business Rules:
    - Success: 2xx with a JSON body carrying data.alias
    - Any other status: rejected, the response body is the error text
    - 2xx without body or alias: rejected as well
    - Only errors raised before the request reached NAD (connection refused,
      connect timeout) are retried. A read timeout may follow an accepted
      enrollment and is final, as is an HTTP response of any status and a
      malformed URL

Examples:
    >>> client = NadApiClient(token="secret")
    >>> alias = client.enroll("https://nad.example.ly/api/v1/accounts", payload)
    >>> client.close()
"""

import json
import logging
import time
from typing import Any, Optional

import requests

from nad_uploader.domain.shared.exceptions import EnrollmentRejectedError

logger = logging.getLogger(__name__)

# ConnectTimeout is a ConnectionError; ReadTimeout is not and is never retried
RETRYABLE_ERRORS = (requests.exceptions.ConnectionError,)


class NadApiClient:
    """
    HTTP client for NAD enrollment endpoints.

    One instance is shared by all worker threads of a batch; the underlying
    requests.Session pools connections per host.

    Args:
        token: Bearer token for the Authorization header
        timeout: Request timeout in seconds
        retries: Attempts per request on connection failures
        backoff: Base delay between attempts (delay = backoff * 2**attempt)
        session: Optional pre-configured requests.Session
    """

    def __init__(
        self,
        token: str,
        timeout: float = 30.0,
        retries: int = 3,
        backoff: float = 0.5,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout = timeout
        self.max_attempts = max(1, retries)
        self.base_delay = backoff
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            }
        )

    def _post(self, url: str, payload: dict[str, Any]) -> requests.Response:
        """POST, retrying only failures that happen before the request is sent."""
        for attempt in range(self.max_attempts):
            try:
                return self._session.post(url, json=payload, timeout=self.timeout)
            except RETRYABLE_ERRORS as e:
                if attempt == self.max_attempts - 1:
                    raise
                delay = self.base_delay * (2**attempt)
                logger.warning(
                    f"NAD request failed (attempt {attempt + 1}/{self.max_attempts}): {e}. "
                    f"Retrying in {delay}s..."
                )
                time.sleep(delay)

    @staticmethod
    def _response_body(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text

    @staticmethod
    def _body_text(body: Any) -> str:
        if isinstance(body, (dict, list)):
            return json.dumps(body, ensure_ascii=False)
        return str(body)

    def enroll(self, url: str, payload: dict[str, Any]) -> str:
        """
        Submit one enrollment.

        Args:
            url: Accounts or merchants endpoint
            payload: Request body from AccountEnrollment/MerchantEnrollment.to_payload()

        Returns:
            Alias assigned by NAD

        Raises:
            EnrollmentRejectedError: If NAD did not return an alias
            requests.exceptions.RequestException: On a read timeout, a malformed
                URL, or when every connection attempt failed
        """
        response = self._post(url, payload)
        body = self._response_body(response)

        if not 200 <= response.status_code < 300:
            logger.debug(f"NAD rejected enrollment with {response.status_code}: {body}")
            raise EnrollmentRejectedError(
                response.status_code, body, message=self._body_text(body)
            )

        if not body:
            raise EnrollmentRejectedError(
                response.status_code, body, message="Empty response body"
            )

        data = body.get("data") if isinstance(body, dict) else None
        alias = data.get("alias") if isinstance(data, dict) else None
        if not alias:
            raise EnrollmentRejectedError(
                response.status_code, body, message=f"No alias in response: {self._body_text(body)}"
            )

        return str(alias)

    def close(self) -> None:
        """Close the session. Safe to call multiple times."""
        if self._session is not None:
            self._session.close()
            self._session = None
