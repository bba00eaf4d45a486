"""
Failure-to-response mapping.

Every way a request can end without an object body is described here as
a ProxyFailure. Messages are fixed strings; backend error text never
reaches the client.
"""

from .models import FailureKind, ProxyFailure

ACCESS_DENIED_MESSAGE = (
    "🔐 Access Denied! The guard's security clearance is insufficient "
    "to enter this restricted wing of the prison! 👮‍♂️🚫"
)
NOT_FOUND_MESSAGE = (
    "🚫 Sorry! That prisoner has escaped from the cell. "
    "The warden is still searching the facility! 👮‍♂️"
)
BUCKET_NOT_FOUND_MESSAGE = (
    "🏢 Prison facility not found! "
    "The entire wing seems to have vanished from the records! 📋❌"
)

MISSING_KEY_MESSAGE = "File path not specified"
MISSING_BUCKET_MESSAGE = "bucket name not defined"

BAD_REQUEST_OUTCOME = "BadRequest"


def missing_key_failure() -> ProxyFailure:
    return ProxyFailure(400, BAD_REQUEST_OUTCOME, MISSING_KEY_MESSAGE)


def missing_bucket_failure() -> ProxyFailure:
    return ProxyFailure(400, BAD_REQUEST_OUTCOME, MISSING_BUCKET_MESSAGE)


def failure_for(kind: FailureKind) -> ProxyFailure:
    """
    Map a storage failure to the response sent to the client.

    Anything that is not an explicit access or bucket problem is served
    as a not-found, so unclassified backend errors never surface as 5xx.
    """
    match kind:
        case FailureKind.ACCESS_DENIED:
            return ProxyFailure(403, kind.value, ACCESS_DENIED_MESSAGE)
        case FailureKind.NO_SUCH_KEY:
            return ProxyFailure(404, kind.value, NOT_FOUND_MESSAGE)
        case FailureKind.NO_SUCH_BUCKET:
            return ProxyFailure(404, kind.value, BUCKET_NOT_FOUND_MESSAGE)
        case _:
            return ProxyFailure(404, FailureKind.UNKNOWN.value, NOT_FOUND_MESSAGE)
