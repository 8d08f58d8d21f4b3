"""
Flipt flag service over gRPC.
"""

import typing

import grpc
from openfeature.exception import GeneralError
from openfeature.exception import OpenFeatureError

from flipt_openfeature.internal.constants import DEFAULT_GRPC_ADDRESS
from flipt_openfeature.internal.errors import error_from_grpc_code
from flipt_openfeature.internal.logger import get_logger
from flipt_openfeature.internal.service import EvaluationResponse
from flipt_openfeature.internal.service import Flag
from flipt_openfeature.internal.service import FlagService
from flipt_openfeature.internal.service import build_evaluation_request
from flipt_openfeature.internal.service import _proto
from flipt_openfeature.internal.utils.http import DEFAULT_TIMEOUT


log = get_logger(__name__)


class FliptStub(object):
    """Client stub for the ``flipt.Flipt`` service calls used by the provider."""

    def __init__(self, channel: grpc.Channel) -> None:
        self._channel = channel
        self.GetFlag = channel.unary_unary(
            _proto.GET_FLAG_METHOD,
            request_serializer=_proto.GetFlagRequest.SerializeToString,
            response_deserializer=_proto.Flag.FromString,
        )
        self.Evaluate = channel.unary_unary(
            _proto.EVALUATE_METHOD,
            request_serializer=_proto.EvaluationRequest.SerializeToString,
            response_deserializer=_proto.EvaluationResponse.FromString,
        )

    def close(self) -> None:
        self._channel.close()


def load_tls_credentials(certificate_path: str) -> grpc.ChannelCredentials:
    """Build channel credentials trusting the CA certificate(s) in ``certificate_path``."""
    with open(certificate_path, "rb") as f:
        root_certificates = f.read()
    if not root_certificates:
        raise ValueError("no certificate found in %s" % certificate_path)
    return grpc.ssl_channel_credentials(root_certificates=root_certificates)


def rpc_error_to_openfeature(error: grpc.RpcError) -> OpenFeatureError:
    code = getattr(error, "code", None)
    if code is None:
        return GeneralError("internal error")
    details = getattr(error, "details", None)
    return error_from_grpc_code(code(), (details() if details is not None else None) or "")


class GRPCFlagService(FlagService):
    """Flipt flag service reached through the gRPC API."""

    def __init__(
        self,
        address: typing.Optional[str] = None,
        socket_path: typing.Optional[str] = None,
        certificate_path: typing.Optional[str] = None,
        client_token: typing.Optional[str] = None,
        timeout: typing.Optional[float] = None,
        stub: typing.Any = None,
    ) -> None:
        super(GRPCFlagService, self).__init__(client=stub)

        if socket_path:
            address = "unix:" + socket_path
        elif address is None:
            address = DEFAULT_GRPC_ADDRESS

        self._address: str = address
        self._certificate_path = certificate_path
        self._timeout: float = timeout if timeout is not None else DEFAULT_TIMEOUT
        self._metadata: typing.Optional[typing.Tuple[typing.Tuple[str, str], ...]] = None
        if client_token:
            self._metadata = (("authorization", "Bearer %s" % client_token),)

    @property
    def address(self) -> str:
        return self._address

    def _connect(self) -> FliptStub:
        credentials = None
        if self._certificate_path:
            try:
                credentials = load_tls_credentials(self._certificate_path)
            except (OSError, ValueError) as e:
                log.warning(
                    "flipt: failed to load certificate %s, using an insecure channel: %s", self._certificate_path, e
                )

        if credentials is not None:
            log.debug("flipt: connecting to %s over grpc with tls", self._address)
            channel = grpc.secure_channel(self._address, credentials)
        else:
            log.debug("flipt: connecting to %s over grpc", self._address)
            channel = grpc.insecure_channel(self._address)

        return FliptStub(channel)

    def _disconnect(self, client: typing.Any) -> None:
        close = getattr(client, "close", None)
        if close is not None:
            close()

    def get_flag(self, namespace: str, key: str) -> Flag:
        stub = self._instance()
        try:
            flag = stub.GetFlag(
                _proto.GetFlagRequest(key=key, namespace_key=namespace),
                timeout=self._timeout,
                metadata=self._metadata,
            )
        except grpc.RpcError as e:
            raise rpc_error_to_openfeature(e) from e

        return Flag(
            key=flag.key,
            enabled=flag.enabled,
            name=flag.name,
            description=flag.description,
            namespace_key=flag.namespace_key,
        )

    def evaluate(
        self, namespace: str, key: str, context: typing.Optional[typing.Mapping[str, typing.Any]]
    ) -> EvaluationResponse:
        req = build_evaluation_request(namespace, key, context)

        stub = self._instance()
        try:
            resp = stub.Evaluate(
                _proto.EvaluationRequest(
                    request_id=req.request_id,
                    flag_key=req.flag_key,
                    entity_id=req.entity_id,
                    context=req.context,
                    namespace_key=req.namespace_key,
                ),
                timeout=self._timeout,
                metadata=self._metadata,
            )
        except grpc.RpcError as e:
            raise rpc_error_to_openfeature(e) from e

        return EvaluationResponse(
            match=resp.match,
            value=resp.value,
            attachment=resp.attachment,
            flag_key=resp.flag_key,
            segment_key=resp.segment_key,
            request_id=resp.request_id,
            entity_id=resp.entity_id,
            namespace_key=resp.namespace_key,
        )
