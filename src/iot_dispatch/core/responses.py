from ..adapters.rest import RestResponse
from ..models.device import DispatchResult
from ..utils.exceptions import ForwardingFailure


def retry_suppressing_response(failure: ForwardingFailure) -> DispatchResult:
    """
    Report a failed downstream call as HTTP 200 with ``{error, uri}``.

    The orchestrator calling this gateway retries any non-2xx answer, which
    would re-trigger physical actions (doors, robots). Forwarding failures are
    therefore success-coded and described in the body instead.
    """
    return DispatchResult(
        status_code=200,
        content={"error": failure.message, "uri": failure.uri}
    )


def passthrough_response(response: RestResponse) -> DispatchResult:
    """Hand the downstream body back to the caller untouched."""
    return DispatchResult(
        status_code=200,
        content=response.body,
        media_type=response.content_type or "application/json"
    )
