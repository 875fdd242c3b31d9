"""
Contact submission pipeline.

received -> validated -> persisted -> responded, with early exits for
validation failures (400) and persistence/unexpected failures (500). The
handler never raises; every outcome is a ``HandlerResult`` the HTTP layer
turns into a JSON response.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import status

from contractor_api.core.request_context import RequestContext, redact_payload
from contractor_api.models.contact import StoredContact
from contractor_api.services.contact_store import ContactStore, StoreFailure
from contractor_api.services.validation import apply_ruleset, check_upfront, normalise_unchecked

SUCCESS_MESSAGE = "Thank you for your message! We will get back to you within 24 hours."
FAILURE_MESSAGE = "Sorry, there was an error submitting your message. Please try again later."


@dataclass
class HandlerResult:
    status_code: int
    body: Dict[str, Any]
    record: Optional[StoredContact] = None

    @property
    def accepted(self) -> bool:
        return self.record is not None


def _rejected(message: str, **extra) -> HandlerResult:
    body = {"success": False, "message": message}
    body.update(extra)
    return HandlerResult(status.HTTP_400_BAD_REQUEST, body)


def _failed(context: RequestContext, expose_details: bool, error: Optional[str] = None) -> HandlerResult:
    body = {"success": False, "message": FAILURE_MESSAGE}
    if expose_details:
        body["requestId"] = context.request_id
        if error:
            body["error"] = error
    return HandlerResult(status.HTTP_500_INTERNAL_SERVER_ERROR, body)


async def submit_contact(
    payload: Any,
    context: RequestContext,
    store: ContactStore,
    strict_validation: bool = True,
    expose_error_details: bool = False,
) -> HandlerResult:
    """
    Validate and persist one contact form submission.

    Args:
        payload: decoded request body; anything but a dict counts as empty
        context: correlation id and timing for this request
        store: two-tier contact store
        strict_validation: reject field-rule violations with 400 instead of
            logging them and storing the normalised values
        expose_error_details: add the correlation id and error text to 500 bodies

    Returns:
        HandlerResult: status code, response body and the stored record on success
    """
    log = context.logger_for(__name__)

    try:
        log.info(f"📨 Contact submission received: {redact_payload(payload)}")
        if not isinstance(payload, dict):
            payload = {}

        failure = check_upfront(payload)
        if failure is not None:
            log.warning(f"⚠️ Contact submission rejected ({failure.message}) fields: {', '.join(failure.fields)}")
            return _rejected(failure.message)

        submission, violations = apply_ruleset(payload)
        if violations:
            summary = "; ".join(f"{v.field}: {v.message}" for v in violations)
            if strict_validation:
                log.warning(f"⚠️ Contact submission failed field rules: {summary}")
                return _rejected(violations[0].message, errors=[v.to_dict() for v in violations])
            log.warning(f"⚠️ Contact submission breaks field rules, accepting anyway: {summary}")
            submission = normalise_unchecked(payload)

        outcome = await store.save(submission, context)
        if isinstance(outcome, StoreFailure):
            log.error(f"❌ Contact submission could not be stored: {outcome.reason}")
            return _failed(context, expose_error_details, outcome.reason)

        record = outcome.record
        log.info(
            f"✅ Contact submission completed: id={record.id} service={record.service} "
            f"tier={outcome.tier.value} in {context.elapsed_ms()}ms"
        )
        return HandlerResult(
            status.HTTP_200_OK,
            {
                "success": True,
                "message": SUCCESS_MESSAGE,
                "data": {
                    "id": record.id,
                    "submittedAt": record.submittedAt.isoformat(),
                },
            },
            record=record,
        )

    except Exception as e:
        log.error(f"❌ Contact form submission error after {context.elapsed_ms()}ms: {str(e)}", exc_info=True)
        return _failed(context, expose_error_details, str(e))
