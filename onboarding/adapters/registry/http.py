"""
HTTP identity registry adapter - Implements IdentityRegistry protocol.

Talks to the national-ID registry over JSON/HTTP with httpx:

    POST {base}{verify}  {"idNumber", "fullName", "birthDate"}
        -> {"valid", "message", "data": {"fullName", "birthPlace",
                                         "birthDate", "gender", "religion"}}
    POST {base}{check}   {"idNumber"} -> {"exists"}
    GET  {base}{health}  -> {"status": "OK"}

No call ever raises to the caller. Every transport or protocol failure is
converted into a negative result so the domain has one decision branch.
No retries are performed here; each call is bounded by the client timeout.
"""

import logging
from datetime import date
from typing import Any

import httpx

from onboarding.domain.models import IdentityRecord, mask_id_number
from onboarding.domain.ports import VerificationOutcome

logger = logging.getLogger(__name__)

USER_AGENT = "onboarding-service/1.0"

_IDENTITY_KEYS = {"fullName", "birthPlace", "birthDate", "gender", "religion"}


class HttpIdentityRegistryClient:
    """
    Implements IdentityRegistry protocol via httpx.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        base_url: str,
        verify_endpoint: str = "/api/dukcapil/verify-nik",
        check_endpoint: str = "/api/dukcapil/check-nik",
        health_endpoint: str = "/health",
        timeout_seconds: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        """
        Initialize the registry client.

        Args:
            base_url: Registry root URL, e.g. http://registry:8081
            verify_endpoint: Path of the identity verification endpoint
            check_endpoint: Path of the ID-number existence endpoint
            health_endpoint: Path of the health endpoint
            timeout_seconds: Bound on every registry call
            client: Preconfigured httpx client (tests inject a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self._verify_endpoint = verify_endpoint
        self._check_endpoint = check_endpoint
        self._health_endpoint = health_endpoint
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout_seconds))

    def close(self) -> None:
        """Closes the underlying HTTP client."""
        self._client.close()

    def verify_identity(
        self, id_number: str, full_name: str, birth_date: date
    ) -> VerificationOutcome:
        url = self.base_url + self._verify_endpoint
        payload = {
            "idNumber": id_number,
            "fullName": full_name,
            "birthDate": birth_date.isoformat() if birth_date is not None else None,
        }

        logger.debug(
            "Calling identity registry %s for %s, birthDate=%s",
            url,
            mask_id_number(id_number),
            payload["birthDate"],
        )

        try:
            response = self._client.post(url, json=payload, headers={"User-Agent": USER_AGENT})
            response.raise_for_status()
            body = response.json()
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            logger.error("Identity registry unreachable: %s", e)
            return VerificationOutcome(
                valid=False,
                message=f"Identity registry is unreachable. Make sure it is running at {self.base_url}",
            )
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if 400 <= status < 500:
                logger.error("Identity registry client error %d: %s", status, e)
                return VerificationOutcome(
                    valid=False,
                    message=f"Identity registry rejected the request: {e.response.text}",
                )
            if status >= 500:
                logger.error("Identity registry server error %d: %s", status, e)
                return VerificationOutcome(
                    valid=False, message="Identity registry encountered an internal error"
                )
            logger.error("Identity registry answered with unexpected status %d", status)
            return VerificationOutcome(
                valid=False,
                message=f"Identity registry returned an unexpected status {status}",
            )
        except Exception as e:
            logger.error("Unexpected error calling identity registry: %s", e)
            return VerificationOutcome(
                valid=False,
                message=f"An error occurred while contacting the identity registry: {e}",
            )

        if not isinstance(body, dict):
            return VerificationOutcome(valid=False, message="No response from identity registry")

        logger.debug("Identity registry answered valid=%s", body.get("valid"))
        return VerificationOutcome(
            valid=body.get("valid") is True,
            message=str(body.get("message") or ""),
            data=self._parse_identity(body.get("data")),
        )

    def id_number_exists(self, id_number: str) -> bool:
        url = self.base_url + self._check_endpoint
        try:
            response = self._client.post(url, json={"idNumber": id_number})
            response.raise_for_status()
            body = response.json()
        except Exception as e:
            logger.error("Error checking ID number existence: %s", e)
            return False

        return isinstance(body, dict) and body.get("exists") is True

    def is_healthy(self) -> bool:
        url = self.base_url + self._health_endpoint
        try:
            response = self._client.get(url)
            response.raise_for_status()
            body = response.json()
        except Exception as e:
            logger.error("Identity registry health check failed: %s", e)
            return False

        return isinstance(body, dict) and body.get("status") == "OK"

    def _parse_identity(self, data: Any) -> IdentityRecord | None:
        """Map the registry's identity payload. Missing or empty payload -> None."""
        if not isinstance(data, dict) or not data:
            return None

        birth_date = None
        raw_birth_date = data.get("birthDate")
        if raw_birth_date:
            try:
                birth_date = date.fromisoformat(raw_birth_date)
            except (TypeError, ValueError):
                logger.warning("Identity registry returned unparseable birthDate %r", raw_birth_date)

        return IdentityRecord(
            full_name=data.get("fullName"),
            birth_place=data.get("birthPlace"),
            birth_date=birth_date,
            gender=data.get("gender"),
            religion=data.get("religion"),
            extra={k: v for k, v in data.items() if k not in _IDENTITY_KEYS},
        )
