from __future__ import annotations

import easyflow
import threading
from contextlib import contextmanager
from functools import cached_property

from easyflow.modules import errors


from typing import Any
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Callable
    from collections.abc import Iterator
    from sqlalchemy.orm import Session
    from sqlalchemy.orm.session import SessionTransaction
    from typing_extensions import TypeAlias

    from easyflow.context.registry import Registry
    from easyflow.context.session import SessionProvider

    ServiceFactory: TypeAlias = Callable[['Context'], Any]


class StoppableService:
    """ Base of services which hold on to resources (like database
    connections). A cached instance is stopped once its context lets go
    of it, see :meth:`Context.discard_service`.

    """

    def stop_service(self) -> None:
        pass


class ContextServicesMixin:
    """ Shortcuts to the services of ``self.context``, which the class using
    this mixin has to provide.

    Looked up services may be kept on the instance, call
    :meth:`clear_cache` after changing the context.

    """

    context: Context

    @cached_property
    def normalize_identifier(self) -> Callable[[str], str]:
        return self.context.get_service('identifier_normalizer')  # type: ignore[no-any-return]

    def clear_cache(self) -> None:
        self.__dict__.pop('normalize_identifier', None)

    @property
    def session_provider(self) -> SessionProvider:
        return self.context.get_service('session_provider')  # type: ignore[no-any-return]

    @property
    def session(self) -> Session:
        """ The session of the current thread. """
        return self.session_provider.session()  # type: ignore[no-any-return]

    def close(self) -> None:
        self.session.close()

    @property
    def begin_nested(self) -> Callable[[], SessionTransaction]:
        return self.session.begin_nested

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class Context:
    """ A named set of settings and services.

    Easyflow reads its configuration (the database to connect to, the size
    of a page, ...) and its collaborators (the session provider, the
    identifier normalizer) from a context. Each application registers its
    own context on the registry, which is a child of the locked master
    context. Settings and services not found on a context are looked up on
    its parent::

        from easyflow import registry

        lab = registry.register_context('lab')
        lab.set_setting('dsn', 'postgresql+psycopg2://...')

        lab.get_setting('page_size')  # 20, from the master context

    Services are registered as factories, which get the context asking for
    the service. Cached services are created once per context.

    """

    def __init__(
        self,
        name: str,
        registry: Registry | None = None,
        parent: Context | None = None,
        locked: bool = False
    ):
        self.name = name
        self.registry = registry or easyflow.registry
        self.parent = parent
        self.locked = locked

        self.settings: dict[str, Any] = {}
        self.factories: dict[str, tuple[ServiceFactory, bool]] = {}
        self.instances: dict[str, Any] = {}

        self.thread_lock = threading.RLock()

    def __repr__(self) -> str:
        return f'<Easyflow Context {self.name!r}>'

    @contextmanager
    def as_current_context(self) -> Iterator[Context]:
        """ Makes this the current context of the thread for the duration
        of the with block.

        """
        with self.registry.context(self.name) as context:
            yield context

    def lock(self) -> None:
        self.locked = True

    def unlock(self) -> None:
        self.locked = False

    def assert_unlocked(self) -> None:
        if self.locked:
            raise errors.ContextIsLocked(self.name)

    def get_setting(self, name: str) -> Any:
        """ Returns the value of the setting, None if no context in the
        chain defines it.

        """
        if name in self.settings:
            return self.settings[name]

        if self.parent is not None:
            return self.parent.get_setting(name)

        return None

    def set_setting(self, name: str, value: Any) -> None:
        self.assert_unlocked()

        with self.thread_lock:
            self.settings[name] = value

    def set_service(
        self,
        name: str,
        factory: ServiceFactory,
        cache: bool = False
    ) -> None:
        """ Registers the factory of a service. A previously cached instance
        of the same name is discarded.

        """
        self.assert_unlocked()

        with self.thread_lock:
            self.factories[name] = (factory, cache)
            self.discard_service(name)

    def lookup_factory(self, name: str) -> tuple[ServiceFactory, bool]:
        if name in self.factories:
            return self.factories[name]

        if self.parent is not None:
            return self.parent.lookup_factory(name)

        raise errors.UnknownService(name)

    def get_service(self, name: str) -> Any:
        factory, cache = self.lookup_factory(name)

        if not cache:
            return factory(self)

        with self.thread_lock:
            if name not in self.instances:
                self.instances[name] = factory(self)

            return self.instances[name]

    def discard_service(self, name: str) -> None:
        """ Forgets the cached instance of the service, if any. The instance
        is stopped if it is a :class:`StoppableService`.

        """
        with self.thread_lock:
            service = self.instances.pop(name, None)

        if isinstance(service, StoppableService):
            service.stop_service()

    def discard_services(self) -> None:
        for name in list(self.instances):
            self.discard_service(name)
