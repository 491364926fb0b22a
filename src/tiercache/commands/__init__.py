"""Built-in CLI sub-commands for tiercache.

* :mod:`~tiercache.commands.cache` -- ``get``, ``set``, ``invalidate``,
  ``clear`` and ``stats``, registered directly on the root app.
* :mod:`~tiercache.commands.config` -- the ``config`` sub-command group.
"""
