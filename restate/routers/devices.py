"""Device routes.

Every device path is served by one endpoint that looks the request path
up in the compiled RouteTable and dispatches on the handler variant.
Unknown paths get a 404 envelope.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from restate.core.errors import (
    GatewayError,
    MalformedBodyError,
    MalformedQueryError,
    MethodNotAllowedError,
    RequestValidationError,
)
from restate.core.routes import (
    ApiIndex,
    CommandAction,
    DeviceDiscovery,
    Route,
    RouteTable,
    TypeAggregate,
)
from restate.devices.tvcom.device import TvcomDevice
from restate.devices.tvcom.opcodes import OpcodeDefinition
from restate.models import ApiResponse, CommandQuery, CommandRequest

logger = logging.getLogger(__name__)
router = APIRouter(tags=["devices"])

ROUTE_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
JSON_CONTENT_TYPE = "application/json"


def get_route_table(request: Request) -> RouteTable:
    """Dependency to get the compiled route table.

    Returns:
        RouteTable stored on the application at startup
    """
    table: RouteTable | None = getattr(request.app.state, "route_table", None)
    return table if table is not None else RouteTable()


@router.api_route("/{path:path}", methods=ROUTE_METHODS, include_in_schema=False)
async def device_endpoint(
    request: Request,
    table: RouteTable = Depends(get_route_table),
) -> JSONResponse:
    """Serve any compiled device route.

    Returns:
        JSON envelope {"message": ..., "data"?: ...}
    """
    route = table.get(request.url.path)
    if route is None:
        return _respond(status.HTTP_404_NOT_FOUND, ApiResponse(message="Not Found"))

    try:
        response = await dispatch(route, request)
    except RequestValidationError as e:
        logger.debug(f"{request.method} {route.path} rejected: {e}")
        return _respond(e.status_code, ApiResponse(message=e.public_message))
    except GatewayError as e:
        logger.error(
            f"{request.method} {route.path} failed on device '{e.device or '-'}' with {type(e).__name__}: {e}"
        )
        return _respond(e.status_code, ApiResponse(message=e.public_message))

    return _respond(status.HTTP_200_OK, response)


async def dispatch(route: Route, request: Request) -> ApiResponse:
    """Run the handler bound to a route.

    Args:
        route: Matched route
        request: Incoming request

    Returns:
        Successful response envelope

    Raises:
        GatewayError: For any failure; the caller maps it to a status code
    """
    match route.handler:
        case CommandAction(device=device, opcode=opcode):
            return await handle_command(device, opcode, request)
        case DeviceDiscovery(device=device):
            _require_get(request)
            return ApiResponse(message="OK", data=list(device.command_names))
        case TypeAggregate() as aggregate:
            _require_get(request)
            return ApiResponse(message="OK", data=aggregate.device_names)
        case ApiIndex(names=names):
            _require_get(request)
            return ApiResponse(message="OK", data=list(names))

    raise TypeError(f"Unsupported route handler: {route.handler!r}")


async def handle_command(device: TvcomDevice, opcode: OpcodeDefinition, request: Request) -> ApiResponse:
    """Handle GET (list values) and POST (run command) on a command route."""
    if request.method == "GET":
        return ApiResponse(message="OK", data=opcode.data_names())

    if request.method != "POST":
        raise MethodNotAllowedError(f"{request.method} not allowed on {request.url.path}")

    command = await decode_command(request)
    value = await device.execute(opcode, command.code)
    return ApiResponse(message="OK", data=value)


async def decode_command(request: Request) -> CommandRequest:
    """Decode the command from the JSON body or the query string.

    The body is used when Content-Type is application/json, the query
    string otherwise.

    Raises:
        MalformedBodyError: If the JSON body cannot be decoded
        MalformedQueryError: If the query string cannot be decoded
    """
    content_type = request.headers.get("content-type", "")
    if content_type.split(";")[0].strip().lower() == JSON_CONTENT_TYPE:
        body = await request.body()
        try:
            return CommandRequest.model_validate_json(body)
        except ValidationError as e:
            raise MalformedBodyError(f"Could not decode body: {e.errors()[0]['msg']}") from e

    params = request.query_params.multi_items()
    keys = [key for key, _ in params]
    if len(keys) != len(set(keys)):
        raise MalformedQueryError(f"Repeated query parameters: {request.url.query}")
    try:
        return CommandQuery.model_validate(dict(params))
    except ValidationError as e:
        raise MalformedQueryError(f"Could not decode query: {e.errors()[0]['msg']}") from e


def _require_get(request: Request) -> None:
    if request.method != "GET":
        raise MethodNotAllowedError(f"{request.method} not allowed on {request.url.path}")


def _respond(status_code: int, response: ApiResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=response.to_content())
