"""A single resource type: its key rules, its read surface and its commands."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pyresync._resource import local as _local
from pyresync._resource import remote as _remote
from pyresync._url import build_endpoint
from pyresync.exceptions import ResyncConfigError
from pyresync.helpers import is_new
from pyresync.keys import KeyBy, derive_item_key, derive_list_key, wrap_in_object
from pyresync.models.item import EMPTY_ITEM, EMPTY_LIST, Item, ResolvedList, ResourcesState
from pyresync.models.options import CommandOptions, ListOperations, ResourceOptions
from pyresync.state.associations import AssociationDescriptor, RelationType

if TYPE_CHECKING:
    from pyresync.client import ResyncClient


class Resource:
    """Commands and reads for one resource type.

    Resources are created with :meth:`pyresync.client.ResyncClient.define`.
    Identity ``params`` may be a scalar (the value of the ``key_by``
    attribute) or a mapping. Every command also accepts an ``options``
    object and/or the individual :class:`CommandOptions` fields as keyword
    arguments.
    """

    def __init__(self, client: ResyncClient, options: ResourceOptions) -> None:
        self._client = client
        self._options = options

        config = client.config
        self._key_by: KeyBy = options.key_by if "key_by" in options.model_fields_set else config.key_by
        self._url_only_params: tuple[str, ...] = (
            options.url_only_params if options.url_only_params is not None else config.url_only_params
        )

        store = client.store
        store.register(options.name)
        for relation, declared in (
            (RelationType.BELONGS_TO, options.belongs_to),
            (RelationType.HAS_AND_BELONGS_TO_MANY, options.has_and_belongs_to_many),
        ):
            for associated, association in declared.items():
                store.associations.register(
                    AssociationDescriptor.build(
                        owner=options.name,
                        associated=associated,
                        relation=relation,
                        options=association,
                    )
                )

    def __repr__(self) -> str:
        return f"Resource(name={self.name!r}, url={self._options.url!r})"

    # ------------------------------------------------------------------
    # Definition
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._options.name

    @property
    def options(self) -> ResourceOptions:
        return self._options

    @property
    def client(self) -> ResyncClient:
        return self._client

    @property
    def key_by(self) -> KeyBy:
        return self._key_by

    # ------------------------------------------------------------------
    # Keys and endpoints
    # ------------------------------------------------------------------

    def item_key(self, params: Any) -> str | None:
        """Key of the item identified by *params* (see :func:`pyresync.keys.derive_item_key`)."""
        return derive_item_key(params, self._key_by, singular=self._options.singular)

    def list_key(self, params: Any = None) -> str:
        return derive_list_key(params, self._url_only_params)

    def url_params(self, params: Any) -> dict[str, Any]:
        return wrap_in_object(params, self._key_by)

    def endpoint(self, params: Mapping[str, Any], *, skip_optional: bool = False, include_query: bool = True) -> str:
        if self._options.url is None:
            raise ResyncConfigError(f"Resource '{self.name}' has no url")
        return build_endpoint(
            self._options.url,
            params,
            skip_optional=skip_optional,
            include_query=include_query,
        )

    def list_operations(self, opts: CommandOptions) -> ListOperations:
        return ListOperations(
            push=tuple(self.list_key(params) for params in opts.push),
            unshift=tuple(self.list_key(params) for params in opts.unshift),
            invalidate=tuple(self.list_key(params) for params in opts.invalidate),
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def state(self) -> ResourcesState:
        return self._client.store.state(self.name)

    @property
    def new_item_key(self) -> str | None:
        return self.state.new_item_key

    @property
    def selection_map(self) -> dict[str, Any]:
        return dict(self.state.selection_map)

    def get_item(self, params: Any = None) -> Item:
        """Return the cached item, or an empty item when nothing is cached."""
        key = self.item_key(params)
        if key is None:
            return EMPTY_ITEM
        return self.state.items.get(key, EMPTY_ITEM)

    def get_list(self, params: Any = None) -> ResolvedList:
        """Return the cached list with its items in position order.

        Positions whose item is no longer cached are skipped.
        """
        state = self.state
        collection = state.lists.get(self.list_key(params), EMPTY_LIST)
        return ResolvedList(
            positions=list(collection.positions),
            status=collection.status,
            metadata=collection.metadata,
            items=[state.items[key] for key in collection.positions if key in state.items],
        )

    def get_new_item(self) -> Item:
        key = self.new_item_key
        if key is None:
            return EMPTY_ITEM
        return self.state.items.get(key, EMPTY_ITEM)

    # ------------------------------------------------------------------
    # Remote commands
    # ------------------------------------------------------------------

    async def fetch_item(
        self,
        params: Any = None,
        *,
        options: CommandOptions | None = None,
        **overrides: Any,
    ) -> Item | None:
        return await _remote.fetch_item(self, params, CommandOptions.resolve(options, **overrides))

    async def fetch_list(
        self,
        params: Any = None,
        *,
        options: CommandOptions | None = None,
        **overrides: Any,
    ) -> ResolvedList | None:
        return await _remote.fetch_list(self, params, CommandOptions.resolve(options, **overrides))

    async def create_item(
        self,
        params: Any = None,
        values: Mapping[str, Any] | None = None,
        *,
        options: CommandOptions | None = None,
        **overrides: Any,
    ) -> Item | None:
        """Create an item remotely.

        Without *values*, the item previously built with :meth:`new_item` is
        saved. Returns the item under its permanent key, the item with ERROR
        status under its temporary key, or ``None`` when an identical request
        is already in flight.
        """
        return await _remote.create_item(self, params, values, CommandOptions.resolve(options, **overrides))

    async def update_item(
        self,
        params: Any,
        values: Mapping[str, Any],
        *,
        options: CommandOptions | None = None,
        **overrides: Any,
    ) -> Item | None:
        return await _remote.update_item(self, params, values, CommandOptions.resolve(options, **overrides))

    async def destroy_item(
        self,
        params: Any,
        *,
        options: CommandOptions | None = None,
        **overrides: Any,
    ) -> Item | None:
        return await _remote.destroy_item(self, params, CommandOptions.resolve(options, **overrides))

    async def get_or_fetch_item(
        self,
        params: Any = None,
        *,
        options: CommandOptions | None = None,
        **overrides: Any,
    ) -> Item:
        """Return the cached item once it has been synced, fetching it first otherwise.

        Local-only resources never fetch and return whatever is cached.
        """
        item = self.get_item(params)
        if item.status.synced_at is not None or self._options.local_only:
            return item
        fetched = await self.fetch_item(params, options=options, **overrides)
        return fetched if fetched is not None else self.get_item(params)

    async def get_or_fetch_list(
        self,
        params: Any = None,
        *,
        options: CommandOptions | None = None,
        **overrides: Any,
    ) -> ResolvedList:
        resolved = self.get_list(params)
        if resolved.status.synced_at is not None or self._options.local_only:
            return resolved
        fetched = await self.fetch_list(params, options=options, **overrides)
        return fetched if fetched is not None else self.get_list(params)

    async def save_item(
        self,
        params: Any = None,
        values: Mapping[str, Any] | None = None,
        *,
        options: CommandOptions | None = None,
        **overrides: Any,
    ) -> Item | None:
        """Update the item if the server already knows it, otherwise create it.

        Without *values*, an existing item is saved with its current
        (possibly edited) values.
        """
        if params is not None and not isinstance(params, Mapping):
            key = self.item_key(params)
        else:
            key = self.item_key([self.url_params(params), dict(values or {})])
        existing = self.state.items.get(key) if key is not None else None
        if existing is None or is_new(existing):
            return await self.create_item(params, values, options=options, **overrides)
        return await self.update_item(
            params,
            values if values is not None else existing.values,
            options=options,
            **overrides,
        )

    # ------------------------------------------------------------------
    # Local commands
    # ------------------------------------------------------------------

    def new_item(
        self,
        params: Any = None,
        values: Mapping[str, Any] | None = None,
        *,
        options: CommandOptions | None = None,
        **overrides: Any,
    ) -> str:
        return _local.new_item(self, params, values, CommandOptions.resolve(options, **overrides))

    def edit_item(self, params: Any, values: Mapping[str, Any]) -> None:
        _local.edit_item(self, params, values)

    def edit_new_item(self, params: Any = None, values: Mapping[str, Any] | None = None) -> None:
        _local.edit_new_item(self, params, values or {})

    def edit_new_or_existing_item(self, params: Any = None, values: Mapping[str, Any] | None = None) -> None:
        _local.edit_new_or_existing_item(self, params, values or {})

    def clear_item(self, params: Any) -> None:
        _local.clear_item(self, params)

    def clear_new_item(self) -> None:
        _local.clear_new_item(self)

    def clear_item_edit(self, params: Any) -> None:
        _local.clear_item_edit(self, params)

    def clear_list(self, params: Any = None) -> None:
        _local.clear_list(self, params)

    def select_item(self, params: Any, *, options: CommandOptions | None = None, **overrides: Any) -> None:
        _local.select_item(self, params, CommandOptions.resolve(options, **overrides), additive=False)

    def select_another_item(self, params: Any, *, options: CommandOptions | None = None, **overrides: Any) -> None:
        _local.select_item(self, params, CommandOptions.resolve(options, **overrides), additive=True)

    def deselect_item(self, params: Any) -> None:
        _local.deselect_item(self, params)

    def clear_selected_items(self) -> None:
        _local.clear_selected_items(self)
