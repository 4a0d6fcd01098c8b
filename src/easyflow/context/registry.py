from __future__ import annotations

import threading

from contextlib import contextmanager

from easyflow.modules import errors
from easyflow.context.core import Context


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Callable
    from collections.abc import Iterator


def create_default_registry() -> Registry:
    """ Returns a registry with a locked master context, which provides the
    default settings and services of easyflow.

    """

    from easyflow.context.session import SessionProvider
    from easyflow.context.settings import set_default_settings
    from easyflow.modules.utils import normalize_identifier

    def session_provider(context: Context) -> SessionProvider:
        return SessionProvider(context.get_setting('dsn'))

    def identifier_normalizer(context: Context) -> Callable[[str], str]:
        return normalize_identifier

    registry = Registry()

    master = registry.master_context
    master.set_service('session_provider', session_provider, cache=True)
    master.set_service('identifier_normalizer', identifier_normalizer)
    set_default_settings(master)
    master.lock()

    return registry


class Registry:
    """ Keeps the contexts of the process by name.

    Every thread has a current context, the master context unless the
    thread switched to another one. :func:`easyflow.new_workflow` called
    without a context operates on it::

        from easyflow import new_workflow, registry

        with registry.context('lab'):
            workflow = new_workflow()

    A global registry is found at ``easyflow.registry``. Applications
    avoiding global state create their own with
    :func:`create_default_registry`.

    """

    def __init__(self) -> None:
        self.thread_lock = threading.RLock()
        self.local = threading.local()

        self.master_context = Context('master', registry=self)
        self.contexts: dict[str, Context] = {'master': self.master_context}

    @property
    def current_context(self) -> Context:
        return getattr(self.local, 'context', self.master_context)

    def is_existing_context(self, name: str) -> bool:
        return name in self.contexts

    def register_context(self, name: str, replace: bool = False) -> Context:
        """ Adds a new context inheriting from the master context.

        An existing context of the same name is only replaced if asked to
        and if it is not locked. Its cached services are discarded.

        """
        with self.thread_lock:
            existing = self.contexts.get(name)

            if existing is not None:
                if not replace:
                    raise errors.ContextAlreadyExists(name)

                existing.assert_unlocked()
                existing.discard_services()

            context = Context(name, registry=self, parent=self.master_context)
            self.contexts[name] = context

            return context

    def get_context(self, name: str, autocreate: bool = False) -> Context:
        with self.thread_lock:
            if name in self.contexts:
                return self.contexts[name]

            if not autocreate:
                raise errors.UnknownContext(name)

            return self.register_context(name)

    def switch_context(self, name: str) -> Context:
        """ Makes the given context the current one of this thread. """

        context = self.get_context(name)
        self.local.context = context

        return context

    @contextmanager
    def context(self, name: str) -> Iterator[Context]:
        previous = self.current_context

        try:
            yield self.switch_context(name)
        finally:
            self.local.context = previous
