"""Remote commands for :class:`pyresync.resource.Resource`.

Every command follows the same flow: build the endpoint, consult the
request guard, apply the optimistic transition, await exactly one transport
call, then apply the completion against whatever the state is by then.
Failures never raise out of a command; they end up on the target's status.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any

from pyresync._envelope import RemoteResult, parse_response, result_from_exception
from pyresync._transport import TransferDirection, TransferProgress, TransportResponse
from pyresync.exceptions import ResyncConfigError, ResyncError, ResyncRequestError
from pyresync.models.item import Item, ResolvedList, ResourceList
from pyresync.models.options import CommandOptions
from pyresync.models.status import Status, StatusType
from pyresync.state.events import (
    CreateItemEvent,
    DestroyItemEvent,
    Failure,
    FetchItemEvent,
    FetchListEvent,
    ProgressEvent,
    UpdateItemEvent,
)

if TYPE_CHECKING:
    from pyresync.resource import Resource

_logger = logging.getLogger(__name__)


def _failure(result: RemoteResult, occurred_at: datetime) -> Failure:
    return Failure(
        occurred_at=occurred_at,
        http_code=result.http_code,
        error=result.error,
        errors=result.errors,
        metadata=result.metadata,
    )


def _item_key(resource: Resource, params: Any, *candidates: Mapping[str, Any]) -> str | None:
    if params is not None and not isinstance(params, Mapping):
        return resource.item_key(params)
    return resource.item_key([resource.url_params(params), *candidates])


def _mapping_values(result: RemoteResult) -> dict[str, Any]:
    return dict(result.values) if isinstance(result.values, Mapping) else {}


def _with_projection(
    resource: Resource,
    opts: CommandOptions,
    metadata: Mapping[str, Any] | None,
) -> dict[str, Any] | None:
    projection = opts.projection or resource.options.projection
    if projection is None:
        return dict(metadata) if metadata is not None else None
    return {**(metadata or {}), "type": projection.value}


def _list_body_problem(values: Any) -> str | None:
    if not isinstance(values, list):
        return f"Expected a list of items, got {type(values).__name__}"
    for position, entry in enumerate(values):
        if not isinstance(entry, Mapping):
            return f"Expected a list of items, got {type(entry).__name__} at position {position}"
    return None


def _progress_callback(
    resource: Resource,
    key: str,
    target: str,
) -> Callable[[TransferProgress], None] | None:
    if not resource.options.progress:
        return None

    def _on_progress(progress: TransferProgress) -> None:
        resource.client.store.apply(
            ProgressEvent(
                resource=resource.name,
                key=key,
                target=target,
                direction=progress.direction.value,
                loaded=progress.loaded,
                total=progress.total,
                length_computable=progress.length_computable,
            )
        )

    return _on_progress


def _complete_progress(resource: Resource, key: str, target: str) -> None:
    if resource.options.progress:
        resource.client.store.apply(
            ProgressEvent(
                resource=resource.name,
                key=key,
                target=target,
                direction=TransferDirection.DOWN.value,
                complete=True,
            )
        )


def _adapt_request(resource: Resource, body: Any) -> Any:
    adaptor = resource.options.request_adaptor
    if body is None or adaptor is None:
        return body
    try:
        return adaptor(body)
    except ResyncError:
        raise
    except Exception as exc:
        raise ResyncRequestError(f"{resource.name} request_adaptor failed: {exc!r}") from exc


def _parse(resource: Resource, response: TransportResponse) -> RemoteResult:
    try:
        return parse_response(response, adaptor=resource.options.response_adaptor)
    except ResyncError:
        raise
    except Exception as exc:
        raise ResyncRequestError(f"{resource.name} response_adaptor failed: {exc!r}") from exc


async def _run(
    resource: Resource,
    *,
    command: str,
    params: Mapping[str, Any],
    opts: CommandOptions,
    start: Callable[[datetime], None],
    body: Any = None,
    skip_optional: bool = False,
    include_query: bool = True,
    on_progress: Callable[[TransferProgress], None] | None = None,
) -> RemoteResult | None:
    """Issue one request. Returns ``None`` when a duplicate request was suppressed."""
    client = resource.client
    guard = client.store.guard
    method = resource.options.method_for(command)

    try:
        endpoint = resource.endpoint(params, skip_optional=skip_optional, include_query=include_query)
    except ResyncRequestError as exc:
        _logger.debug("%s.%s could not build its request: %s", resource.name, command, exc)
        start(client.now())
        return result_from_exception(exc)

    if not opts.force and guard.is_in_progress(method, endpoint):
        _logger.debug("Suppressing duplicate %s %s", method, endpoint)
        return None

    transport = client._require_transport()
    guard.register_start(method, endpoint)
    try:
        start(client.now())
        response = await transport.request(
            method,
            endpoint,
            body=_adapt_request(resource, body),
            headers={**resource.options.headers, **opts.headers} or None,
            on_progress=on_progress,
        )
        return _parse(resource, response)
    except ResyncError as exc:
        _logger.debug("%s %s failed: %s", method, endpoint, exc)
        return result_from_exception(exc)
    finally:
        guard.register_end(method, endpoint)


def _require_remote(resource: Resource, command: str) -> None:
    if resource.options.local_only:
        raise ResyncConfigError(f"{resource.name}.{command}() is not available for a local_only resource")


async def fetch_item(resource: Resource, params: Any, opts: CommandOptions) -> Item | None:
    _require_remote(resource, "fetch_item")
    store = resource.client.store
    url_params = resource.url_params(params)
    key = _item_key(resource, params)
    if key is None:
        key = resource.list_key(url_params)
    metadata = _with_projection(
        resource, opts, opts.metadata if opts.metadata is not None else resource.options.metadata
    )

    def _start(requested_at: datetime) -> None:
        store.apply(
            FetchItemEvent(
                resource=resource.name,
                status=StatusType.FETCHING,
                key=key,
                requested_at=requested_at,
                metadata=metadata,
            )
        )

    result = await _run(
        resource,
        command="fetch_item",
        params=url_params,
        opts=opts,
        start=_start,
        on_progress=_progress_callback(resource, key, "item"),
    )
    if result is None:
        return None

    now = resource.client.now()
    if result.ok:
        _complete_progress(resource, key, "item")
        store.apply(
            FetchItemEvent(
                resource=resource.name,
                status=StatusType.SUCCESS,
                key=key,
                item=Item(
                    values=_mapping_values(result),
                    status=Status(type=StatusType.SUCCESS, http_code=result.http_code, synced_at=now),
                    metadata=result.metadata,
                ),
            )
        )
    else:
        store.apply(
            FetchItemEvent(
                resource=resource.name,
                status=StatusType.ERROR,
                key=key,
                failure=_failure(result, now),
            )
        )
    return resource.get_item(key)


async def fetch_list(resource: Resource, params: Any, opts: CommandOptions) -> ResolvedList | None:
    _require_remote(resource, "fetch_list")
    store = resource.client.store
    url_params = dict(params) if isinstance(params, Mapping) else {}
    key = resource.list_key(params)

    def _start(requested_at: datetime) -> None:
        store.apply(
            FetchListEvent(
                resource=resource.name,
                status=StatusType.FETCHING,
                key=key,
                requested_at=requested_at,
                metadata=_with_projection(resource, opts, opts.metadata),
            )
        )

    result = await _run(
        resource,
        command="fetch_list",
        params=url_params,
        opts=opts,
        start=_start,
        on_progress=_progress_callback(resource, key, "list"),
    )
    if result is None:
        return None

    now = resource.client.now()
    if result.ok:
        problem = _list_body_problem(result.values)
        if problem is not None:
            result = RemoteResult(
                ok=False,
                http_code=result.http_code,
                metadata=result.metadata,
                error=problem,
                errors=[problem],
            )

    if not result.ok:
        store.apply(
            FetchListEvent(
                resource=resource.name,
                status=StatusType.ERROR,
                key=key,
                failure=_failure(result, now),
            )
        )
        return resource.get_list(params)

    items_metadata = _with_projection(
        resource,
        opts,
        opts.items_metadata if opts.items_metadata is not None else resource.options.metadata,
    ) or {}
    items: dict[str, Item] = {}
    positions: list[str] = []
    for values in result.values:
        item_values = dict(values)
        item_key = resource.item_key([item_values, url_params]) or resource.client.generate_key()
        positions.append(item_key)
        items[item_key] = Item(
            values=item_values,
            status=Status(type=StatusType.SUCCESS, synced_at=now),
            metadata=items_metadata,
        )

    _complete_progress(resource, key, "list")
    store.apply(
        FetchListEvent(
            resource=resource.name,
            status=StatusType.SUCCESS,
            key=key,
            items=items,
            collection=ResourceList(
                positions=positions,
                status=Status(
                    type=StatusType.SUCCESS,
                    http_code=result.http_code,
                    synced_at=now,
                    items_in_last_response=len(positions),
                ),
                metadata=result.metadata,
            ),
        )
    )
    return resource.get_list(params)


async def create_item(
    resource: Resource,
    params: Any,
    values: Mapping[str, Any] | None,
    opts: CommandOptions,
) -> Item | None:
    client = resource.client
    store = client.store
    url_params = resource.url_params(params)

    pending_key: str | None = None
    if values is None:
        # Saving the item built with new_item().
        pending_key = _item_key(resource, params) if params is not None else resource.new_item_key
        pending = resource.state.items.get(pending_key) if pending_key is not None else None
        values = pending.values if pending is not None else {}
    payload = dict(values)

    temporary_key = pending_key or _item_key(resource, params, payload) or client.generate_key()
    list_operations = resource.list_operations(opts)
    metadata = opts.metadata if opts.metadata is not None else resource.options.metadata

    if resource.options.local_only:
        store.apply(
            CreateItemEvent(
                resource=resource.name,
                status=StatusType.SUCCESS,
                key=temporary_key,
                item=Item(
                    values=payload,
                    status=Status(type=StatusType.SUCCESS, synced_at=client.now()),
                    metadata=metadata,
                ),
                list_operations=list_operations,
                local_only=True,
            )
        )
        return resource.get_item(temporary_key)

    def _start(requested_at: datetime) -> None:
        store.apply(
            CreateItemEvent(
                resource=resource.name,
                status=StatusType.CREATING,
                temporary_key=temporary_key,
                item=Item(
                    values=payload,
                    status=Status(type=StatusType.CREATING, requested_at=requested_at),
                    metadata=metadata,
                ),
                list_operations=list_operations,
            )
        )

    result = await _run(
        resource,
        command="create_item",
        params=url_params,
        opts=opts,
        start=_start,
        body=payload,
        skip_optional=True,
        include_query=False,
        on_progress=_progress_callback(resource, temporary_key, "item"),
    )
    if result is None:
        return None

    now = client.now()
    if not result.ok:
        store.apply(
            CreateItemEvent(
                resource=resource.name,
                status=StatusType.ERROR,
                temporary_key=temporary_key,
                failure=_failure(result, now),
            )
        )
        return resource.get_item(temporary_key)

    response_values = _mapping_values(result)
    key = resource.item_key([response_values, url_params, payload]) or temporary_key
    _complete_progress(resource, temporary_key, "item")
    store.apply(
        CreateItemEvent(
            resource=resource.name,
            status=StatusType.SUCCESS,
            temporary_key=temporary_key,
            key=key,
            item=Item(
                values=response_values,
                status=Status(type=StatusType.SUCCESS, http_code=result.http_code, synced_at=now),
                metadata=result.metadata,
            ),
        )
    )
    return resource.get_item(key)


async def update_item(
    resource: Resource,
    params: Any,
    values: Mapping[str, Any],
    opts: CommandOptions,
) -> Item | None:
    client = resource.client
    store = client.store
    url_params = resource.url_params(params)
    payload = dict(values)
    key = _item_key(resource, params, payload)
    if key is None:
        raise ResyncConfigError(f"{resource.name}.update_item() needs the identity of the item to update")
    metadata = opts.metadata if opts.metadata is not None else resource.options.metadata

    if resource.options.local_only:
        store.apply(
            UpdateItemEvent(
                resource=resource.name,
                status=StatusType.SUCCESS,
                key=key,
                item=Item(values=payload, status=Status(type=StatusType.SUCCESS, synced_at=client.now())),
                previous_values=opts.previous_values,
                local_only=True,
            )
        )
        return resource.get_item(key)

    def _start(requested_at: datetime) -> None:
        store.apply(
            UpdateItemEvent(
                resource=resource.name,
                status=StatusType.UPDATING,
                key=key,
                item=Item(
                    values=payload,
                    status=Status(type=StatusType.UPDATING, requested_at=requested_at),
                    metadata=metadata,
                ),
                previous_values=opts.previous_values,
            )
        )

    result = await _run(
        resource,
        command="update_item",
        params=url_params,
        opts=opts,
        start=_start,
        body=payload,
        include_query=False,
        on_progress=_progress_callback(resource, key, "item"),
    )
    if result is None:
        return None

    now = client.now()
    if result.ok:
        _complete_progress(resource, key, "item")
        store.apply(
            UpdateItemEvent(
                resource=resource.name,
                status=StatusType.SUCCESS,
                key=key,
                item=Item(
                    values=_mapping_values(result) if result.http_code != 204 else {},
                    status=Status(type=StatusType.SUCCESS, http_code=result.http_code, synced_at=now),
                    metadata=result.metadata,
                ),
                previous_values=opts.previous_values,
            )
        )
    else:
        store.apply(
            UpdateItemEvent(
                resource=resource.name,
                status=StatusType.ERROR,
                key=key,
                failure=_failure(result, now),
                previous_values=opts.previous_values,
            )
        )
    return resource.get_item(key)


async def destroy_item(resource: Resource, params: Any, opts: CommandOptions) -> Item | None:
    """Destroy an item. Returns ``None`` once it is gone, or the item with DESTROY_ERROR status."""
    client = resource.client
    store = client.store
    url_params = resource.url_params(params)
    key = _item_key(resource, params)
    if key is None:
        raise ResyncConfigError(f"{resource.name}.destroy_item() needs the identity of the item to destroy")

    if resource.options.local_only:
        store.apply(
            DestroyItemEvent(
                resource=resource.name,
                status=StatusType.SUCCESS,
                key=key,
                previous_values=opts.previous_values,
                local_only=True,
            )
        )
        return None

    def _start(requested_at: datetime) -> None:
        store.apply(
            DestroyItemEvent(
                resource=resource.name,
                status=StatusType.DESTROYING,
                key=key,
                requested_at=requested_at,
                previous_values=opts.previous_values,
            )
        )

    result = await _run(
        resource,
        command="destroy_item",
        params=url_params,
        opts=opts,
        start=_start,
        include_query=False,
    )
    if result is None:
        return None

    if result.ok:
        store.apply(
            DestroyItemEvent(
                resource=resource.name,
                status=StatusType.SUCCESS,
                key=key,
                previous_values=opts.previous_values,
            )
        )
        return None

    store.apply(
        DestroyItemEvent(
            resource=resource.name,
            status=StatusType.DESTROY_ERROR,
            key=key,
            failure=_failure(result, client.now()),
            previous_values=opts.previous_values,
        )
    )
    return resource.get_item(key)
