"""Command implementations behind :class:`pyresync.resource.Resource`."""
