"""
Classification of Flipt and transport errors into OpenFeature resolution errors.
"""

import typing

import grpc
from openfeature.exception import FlagNotFoundError
from openfeature.exception import GeneralError
from openfeature.exception import InvalidContextError
from openfeature.exception import OpenFeatureError
from openfeature.exception import ProviderNotReadyError


# gRPC status codes, as numbers so they also apply to HTTP gateway error bodies
GRPC_INVALID_ARGUMENT = grpc.StatusCode.INVALID_ARGUMENT.value[0]
GRPC_NOT_FOUND = grpc.StatusCode.NOT_FOUND.value[0]
GRPC_UNAVAILABLE = grpc.StatusCode.UNAVAILABLE.value[0]

_GRPC_CODE_ERRORS: typing.Dict[int, typing.Type[OpenFeatureError]] = {
    GRPC_NOT_FOUND: FlagNotFoundError,
    GRPC_INVALID_ARGUMENT: InvalidContextError,
    GRPC_UNAVAILABLE: ProviderNotReadyError,
}


def error_from_grpc_code(code: typing.Union[grpc.StatusCode, int, None], message: str) -> OpenFeatureError:
    """Map a gRPC status code to the matching OpenFeature error.

    NOT_FOUND becomes FLAG_NOT_FOUND, INVALID_ARGUMENT becomes INVALID_CONTEXT,
    UNAVAILABLE becomes PROVIDER_NOT_READY and anything else is GENERAL.
    """
    if isinstance(code, grpc.StatusCode):
        code = code.value[0]
    error_cls = _GRPC_CODE_ERRORS.get(code, GeneralError)  # type: ignore[arg-type]
    return error_cls(message)


def classify_error(exc: BaseException) -> OpenFeatureError:
    """Return ``exc`` when it already is a resolution error, otherwise wrap it as a general one."""
    if isinstance(exc, OpenFeatureError):
        return exc
    return GeneralError(str(exc))
