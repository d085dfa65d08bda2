import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel

from errors import AssessmentError
from models.content import ContentItem
from models.moderation import Verdict

logger = logging.getLogger(__name__)


class AssessmentResponse(BaseModel):
    analysis: Verdict


class AssessmentClient:
    """Client for the external automated-assessment endpoint.

    Every way the call can go wrong (timeout, transport error, non-2xx
    status, a body that is not JSON or does not match the verdict shape)
    surfaces as a single ``AssessmentError``. The cause is only logged.
    """

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.endpoint = endpoint
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def build_payload(self, item: ContentItem) -> dict[str, Any]:
        return {
            "content": item.text,
            "contentId": item.content_id,
            "contentType": item.content_kind,
            "userId": item.author_id,
            "mediaUrls": list(item.media_refs),
        }

    async def assess(self, item: ContentItem) -> Verdict:
        logger.info(
            "assessment_request content_id=%s content_kind=%s media=%s",
            item.content_id,
            item.content_kind,
            len(item.media_refs),
        )
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.endpoint,
                    json=self.build_payload(item),
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
            if not response.is_success:
                raise AssessmentError(f"Assessment endpoint returned {response.status_code}")
            verdict = AssessmentResponse.model_validate(response.json()).analysis
        except AssessmentError as exc:
            self._log_failure(item, exc)
            raise
        except (httpx.HTTPError, ValueError) as exc:
            # pydantic.ValidationError and json decoding errors are ValueErrors
            self._log_failure(item, exc)
            raise AssessmentError(str(exc) or exc.__class__.__name__) from exc

        logger.info(
            "assessment_response content_id=%s action=%s severity=%s confidence=%.3f",
            item.content_id,
            verdict.action_taken.value,
            verdict.severity.value,
            verdict.confidence,
        )
        return verdict

    @staticmethod
    def _log_failure(item: ContentItem, exc: Exception) -> None:
        logger.warning(
            "assessment_failed content_id=%s content_kind=%s error_type=%s error=%s",
            item.content_id,
            item.content_kind,
            exc.__class__.__name__,
            exc,
        )
