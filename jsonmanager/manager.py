from collections.abc import Callable
from typing import Any

import aiohttp
from yarl import URL

from jsonmanager.http.endpoint import get_body
from jsonmanager.logging import manager_logger
from jsonmanager.serialization.config import SerializerConfig, default_config
from jsonmanager.serialization.engine import JsonEngine
from jsonmanager.storage.file import FilePath, read_text, resolve_file, write_text
from jsonmanager.utils.asyncresult import async_catch_ex

class SerializerNotReadyException(RuntimeError):
    '''Serializer has not been built yet'''

class SerializerManager:
    """
    Keeps adapter registrations and a cached serializer built from them.

    Registry changes are not picked up automatically: call rebuild_serializer
    for newly registered or removed adapters to affect subsequent I/O calls.
    The manager does no locking, callers sharing one instance must serialize
    access themselves.
    """

    def __init__(self, cache_immediately: bool = True, config_factory: Callable[[], SerializerConfig] = default_config):
        self._config_factory = config_factory
        self._adapters: dict[Any, object] = {}
        self._serializer: JsonEngine | None = None
        if cache_immediately:
            self.rebuild_serializer()

    def rebuild_serializer(self) -> None:
        self._serializer = JsonEngine(self._config_factory(), self._adapters)
        manager_logger("rebuild_serializer").debug(f"Serializer rebuilt with {len(self._adapters)} adapter(s)")

    def register_adapter(self, type_: Any, adapter: object) -> None:
        """
        Registers adapter for type_, replacing any adapter previously registered for it.

        An adapter is registered for one type at a time: if it was registered
        for another type, that registration is dropped.
        """
        self._remove(adapter)
        self._adapters[type_] = adapter
        manager_logger("register_adapter").debug(f"Adapter {type(adapter).__name__} registered for {type_!r}")

    def unregister_adapter(self, adapter: object) -> None:
        if self._remove(adapter):
            manager_logger("unregister_adapter").debug(f"Adapter {type(adapter).__name__} unregistered")

    def _remove(self, adapter) -> bool:
        registered_types = [type_ for type_, registered in self._adapters.items() if registered is adapter]
        for type_ in registered_types:
            del self._adapters[type_]
        return len(registered_types) > 0

    def list_adapters(self) -> list[object]:
        # adapters need not be hashable; each one is registered for a single type, so there are no duplicates
        return list(self._adapters.values())

    def get_serializer(self) -> JsonEngine | None:
        return self._serializer

    def _ready_serializer(self) -> JsonEngine:
        if self._serializer is None:
            raise SerializerNotReadyException("Serializer is not built, call rebuild_serializer first")
        return self._serializer

    async def load_from_file[T](self, type_: type[T] | Any, path: FilePath) -> T | None:
        """
        Deserializes the content of a file.

        The file is created along with missing parent directories when it does
        not exist. An empty file gives None.

        Raises:
            SerializerNotReadyException: If the serializer has not been built.
            FileSetupException: If the file or its parent directories cannot be created.
            OSError: If the file cannot be read.
            SerializationException: If the content does not deserialize as type_.
        """
        serializer = self._ready_serializer()
        file_path = await resolve_file(path)
        text = await read_text(file_path)
        return serializer.from_json(text, type_)

    async def save_to_file(self, obj: Any, type_: Any, path: FilePath) -> None:
        """
        Serializes obj as type_ and replaces the whole content of a file with it.

        The file is created along with missing parent directories when it does
        not exist. Pass None as type_ to serialize obj as its runtime type.

        Raises:
            SerializerNotReadyException: If the serializer has not been built.
            FileSetupException: If the file or its parent directories cannot be created.
            OSError: If the file cannot be written.
            SerializationException: If obj cannot be serialized as type_.
        """
        serializer = self._ready_serializer()
        text = serializer.to_json(obj, type_)
        file_path = await resolve_file(path)
        await write_text(file_path, text)

    async def load_from_endpoint[T](self, type_: type[T] | Any, url: str | URL, session: aiohttp.ClientSession | None = None) -> T | None:
        """
        Deserializes the body of a GET response.

        Any status other than 200 OK gives None. Connection errors propagate.
        """
        serializer = self._ready_serializer()
        body = await get_body(url, session)
        match body:
            case None:
                return None
            case _:
                return serializer.from_json(body, type_)

    @async_catch_ex
    async def try_load_from_file(self, type_: Any, path: FilePath):
        return await self.load_from_file(type_, path)

    @async_catch_ex
    async def try_save_to_file(self, obj: Any, type_: Any, path: FilePath):
        return await self.save_to_file(obj, type_, path)

    @async_catch_ex
    async def try_load_from_endpoint(self, type_: Any, url: str | URL, session: aiohttp.ClientSession | None = None):
        return await self.load_from_endpoint(type_, url, session)
