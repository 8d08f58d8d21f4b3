"""
Flipt flag service over the HTTP REST API.

Supports ``http://``, ``https://`` and ``unix://`` addresses. Requests and
responses use the protobuf JSON mapping of the Flipt API: camelCase keys, with
false booleans and empty strings omitted from responses.
"""

import http.client
import json
import typing
from urllib.parse import quote

from openfeature.exception import GeneralError
from openfeature.exception import OpenFeatureError

from flipt_openfeature.internal.constants import DEFAULT_HTTP_ADDRESS
from flipt_openfeature.internal.constants import DEFAULT_HTTPS_ADDRESS
from flipt_openfeature.internal.constants import UNIX_SCHEME
from flipt_openfeature.internal.errors import error_from_grpc_code
from flipt_openfeature.internal.logger import get_logger
from flipt_openfeature.internal.service import EvaluationResponse
from flipt_openfeature.internal.service import Flag
from flipt_openfeature.internal.service import FlagService
from flipt_openfeature.internal.service import build_evaluation_request
from flipt_openfeature.internal.utils.http import DEFAULT_TIMEOUT
from flipt_openfeature.internal.utils.http import Connector
from flipt_openfeature.internal.utils.http import Response
from flipt_openfeature.internal.utils.http import connector
from flipt_openfeature.internal.utils.http import request


log = get_logger(__name__)

FLAG_ENDPOINT = "/api/v1/namespaces/{namespace}/flags/{key}"
EVALUATE_ENDPOINT = "/api/v1/namespaces/{namespace}/evaluate"


class HTTPFlagService(FlagService):
    """Flipt flag service reached through the HTTP API."""

    def __init__(
        self,
        address: typing.Optional[str] = None,
        socket_path: typing.Optional[str] = None,
        https: bool = False,
        client_token: typing.Optional[str] = None,
        timeout: typing.Optional[float] = None,
        connect: typing.Optional[Connector] = None,
    ) -> None:
        super(HTTPFlagService, self).__init__(client=connect)

        if socket_path:
            address = UNIX_SCHEME + socket_path
        elif address is None:
            address = DEFAULT_HTTPS_ADDRESS if https else DEFAULT_HTTP_ADDRESS
        elif https and address.startswith("http://"):
            address = "https://" + address[len("http://") :]

        self._address: str = address
        self._timeout: float = timeout if timeout is not None else DEFAULT_TIMEOUT
        self._headers: typing.Dict[str, str] = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if client_token:
            self._headers["Authorization"] = "Bearer %s" % client_token

    @property
    def address(self) -> str:
        return self._address

    def _connect(self) -> Connector:
        log.debug("flipt: connecting to %s over http", self._address)
        return connector(self._address, timeout=self._timeout)

    def _request(self, method: str, path: str, body: typing.Optional[bytes] = None) -> Response:
        connect = self._instance()
        try:
            return request(connect, method, path, body=body, headers=self._headers)
        except (OSError, http.client.HTTPException) as e:
            raise GeneralError("making request: %s" % e) from e

    def get_flag(self, namespace: str, key: str) -> Flag:
        path = FLAG_ENDPOINT.format(namespace=quote(namespace, safe=""), key=quote(key, safe=""))
        resp = self._request("GET", path)

        if resp.status != http.client.OK:
            raise _response_error(resp, "getting flag", key)

        data = _decode_body(resp)
        return Flag(
            key=data.get("key", key),
            enabled=bool(data.get("enabled", False)),
            name=data.get("name", ""),
            description=data.get("description", ""),
            namespace_key=data.get("namespaceKey", namespace),
        )

    def evaluate(
        self, namespace: str, key: str, context: typing.Optional[typing.Mapping[str, typing.Any]]
    ) -> EvaluationResponse:
        req = build_evaluation_request(namespace, key, context)

        body = json.dumps(
            {
                "requestId": req.request_id,
                "namespaceKey": req.namespace_key,
                "flagKey": req.flag_key,
                "entityId": req.entity_id,
                "context": req.context,
            }
        ).encode("utf-8")

        resp = self._request("POST", EVALUATE_ENDPOINT.format(namespace=quote(namespace, safe="")), body)

        if resp.status != http.client.OK:
            raise _response_error(resp, "evaluating", key)

        data = _decode_body(resp)
        return EvaluationResponse(
            match=bool(data.get("match", False)),
            value=data.get("value", ""),
            attachment=data.get("attachment", ""),
            flag_key=data.get("flagKey", key),
            segment_key=data.get("segmentKey", ""),
            request_id=data.get("requestId", ""),
            entity_id=data.get("entityId", ""),
            namespace_key=data.get("namespaceKey", namespace),
        )


def _decode_body(resp: Response) -> typing.Dict[str, typing.Any]:
    try:
        data = json.loads(resp.body.decode("utf-8"))
    except ValueError as e:
        raise GeneralError("unmarshalling response body: %s" % e) from e
    if not isinstance(data, dict):
        raise GeneralError("unmarshalling response body: expected an object, got %r" % (data,))
    return data


def _response_error(resp: Response, action: str, key: str) -> OpenFeatureError:
    """Build the error for a non-200 response.

    JSON error bodies carry the gRPC status code of the failure, which is
    mapped to the matching resolution error. Any other response, such as a 404
    from a misconfigured address, is a general error.
    """
    text = resp.body.decode("utf-8", errors="replace")

    if resp.content_type.startswith("application/json"):
        try:
            body = json.loads(text)
        except ValueError:
            body = None

        if isinstance(body, dict) and "code" in body:
            try:
                code = int(body["code"])
            except (TypeError, ValueError):
                code = None

            if code is not None:
                message = body.get("message") or body.get("error") or "flag %r: %s" % (key, action)
                return error_from_grpc_code(code, message)

    return GeneralError("%s: status=%d %s" % (action, resp.status, text))
