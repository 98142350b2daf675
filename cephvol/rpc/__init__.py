"""
RPC client and server used as transport between the container host and the driver.

The driver daemon exposes its volume operations as methods of a service class. Each
request from the host (create, mount, unmount, ...) turns into a call on that service,
and the result or raised exception is sent back. The requirements for that transport
are modest, but specific:

* Every request must be handled on its own thread
    * A slow mount of one volume must not hold up requests for other volumes.
* Errors must arrive intact
    * The host distinguishes a missing volume from a failed mount, so a NotFoundError
    raised by the driver must be raised as NotFoundError by the client.
* Only local processes talk to the driver
    * An IPC endpoint with a shared secret token is enough, no encryption needed.

ZeroMQ provides the ROUTER/DEALER proxy that spreads requests over a pool of worker
threads and REQUEST/REPLY sockets on the client side. MessagePack provides compact
serialization with hooks for custom types, which is used to transport dataclasses
(based on the type annotations of the service) and exceptions.
"""

from abc import ABC
import builtins
from dataclasses import is_dataclass
from enum import auto, Enum
import logging
import threading
import time
import typing
from typing import Any, Callable, Dict, Iterable, List, NoReturn, Optional, Tuple

import msgpack
import zmq

from cephvol.errors import ALL_ERRORS
from cephvol.logger import log, summarize


class Encoding:
    """Serialization and deserialization of dataclasses and exceptions."""

    def __init__(self, *dataclasses: type, exceptions: Iterable[type] = ALL_ERRORS):
        """Initialize a (de)serializer for the given dataclass and exception types."""
        self._dataclasses: Dict[str, type] = {}
        self._exceptions: Dict[str, type] = {}

        for dataclass in self._discover_dataclasses(*dataclasses):
            self._dataclasses[dataclass.__qualname__] = dataclass

        for exception in exceptions:
            self._exceptions[exception.__qualname__] = exception

    def pack(self, obj: Any) -> bytes:
        """Serialize an object using MessagePack."""
        return msgpack.packb(obj, default=self.serialize_obj)

    def unpack(self, data: bytes) -> Any:
        """Deserialize an object using MessagePack."""
        return msgpack.unpackb(data, object_hook=self.deserialize_obj)

    def serialize_obj(self, obj: Any) -> Any:
        """Turn a dataclass or exception into a serialization friendly object."""
        if isinstance(obj, BaseException):
            return self._serialize_exception(obj)
        elif obj.__class__.__qualname__ in self._dataclasses:
            data = {"type": obj.__class__.__qualname__, "data": obj.__dict__}
            return {"__data__": data}
        else:
            raise ValueError(f"unserializable object {obj}")

    def deserialize_obj(self, obj: Any) -> Any:
        """Reconstruct a dataclass or exception from a serialized representation."""
        if isinstance(obj, dict) and "__exception__" in obj:
            return self._deserialize_exception(obj)
        elif isinstance(obj, dict) and "__data__" in obj:
            return self._deserialize_dataclass(obj)
        else:
            return obj

    @staticmethod
    def _serialize_exception(exc: BaseException) -> Dict:
        # Arguments that MessagePack can't handle are turned into strings
        args = [
            arg if isinstance(arg, (str, int, float, bool, type(None))) else str(arg)
            for arg in exc.args
        ]

        return {"__exception__": {"name": exc.__class__.__qualname__, "args": args}}

    def _deserialize_exception(self, obj: Dict) -> BaseException:
        """
        Reconstruct an exception from its serialized representation.

        Registered driver errors and builtin exceptions (like OSError) are reconstructed
        faithfully, anything else as a generic Exception with the original arguments.
        """
        name = obj["__exception__"]["name"]
        args = obj["__exception__"]["args"]

        if name in self._exceptions:
            return self._exceptions[name](*args)

        builtin_exc = getattr(builtins, name, None.__class__)

        if isinstance(builtin_exc, type) and issubclass(builtin_exc, BaseException):
            return builtin_exc(*args)
        else:
            return Exception(*args)

    def _deserialize_dataclass(self, obj: Dict) -> Any:
        """Reconstruct a previously registered dataclass type."""
        type_name = obj["__data__"]["type"]
        type_data = obj["__data__"]["data"]

        if type_name not in self._dataclasses:
            raise TypeError(f"unknown dataclass '{type_name}'")

        try:
            return self._dataclasses[type_name](**type_data)
        except Exception as e:
            raise TypeError(f"failed to deserialize {type_name}: {e}")

    @staticmethod
    def _discover_dataclasses(*seed_types: type) -> List[type]:
        """Find all dataclass types used with the specified types."""
        candidates = set(seed_types)
        explored = set()
        dataclasses = set()

        while candidates:
            candidate = candidates.pop()

            if candidate in explored:
                continue

            explored.add(candidate)

            if is_dataclass(candidate):
                dataclasses.add(candidate)

                for subtype in typing.get_type_hints(candidate).values():
                    candidates.add(subtype)
            elif hasattr(candidate, "__origin__"):
                # Types nested in constructs like Optional[T] and List[T]
                for subtype in typing.get_args(candidate):
                    candidates.add(subtype)

        return list(dataclasses)


class ReturnType(Enum):
    """Type of result for an RPC call."""

    NORMAL = auto()
    EXCEPTION = auto()
    TOKEN_ERROR = auto()


class InvalidTokenError(RuntimeError):
    """Exception raised when an RPC call is made with a wrong authentication token."""


class Base(ABC):
    """Shared logic between RPC client and server implementation."""

    def __init__(self, service_type: type):
        """Initialize RPC (de)serialization to support the specified service class."""
        self._encoding = Encoding(*self._discover_function_types(service_type))

    @staticmethod
    def _exposed_names(service_type: type) -> List[str]:
        """Return the names of the public methods of the service."""
        return [
            name
            for name in dir(service_type)
            if not name.startswith("_") and callable(getattr(service_type, name))
        ]

    @classmethod
    def _discover_function_types(cls, service_type: type) -> List[type]:
        """Discover all types used as parameters or return values in the service."""
        function_types: List[type] = []

        for name in cls._exposed_names(service_type):
            func = getattr(service_type, name)
            function_types += typing.get_type_hints(func).values()

        return function_types


class Server(Base):
    """
    RPC server to expose the public methods of a service instance.

    Example:
    ```
    server = rpc.Server(VolumeDriverService(coordinator), token="abc", worker_count=4)
    server.serve("ipc:///run/cephvol/cephvol.sock")
    ```
    """

    def __init__(
        self, service: Any, token: Optional[str] = None, worker_count: int = 1
    ):
        """
        Instantiate an RPC server for the given service instance.

        If a token is specified then clients must use that same token to be allowed to
        make calls. Incoming calls are distributed across worker_count threads.
        """
        super().__init__(service.__class__)

        self.context = zmq.Context()

        self.service = service
        self.token = token
        self.worker_count = worker_count

        self._exposed = set(self._exposed_names(service.__class__))

    def serve(self, endpoint: str) -> NoReturn:
        """
        Start listening and handling calls for clients on the specified endpoint.

        The endpoint has the format of zmq_bind, for example "ipc:///run/cephvol.sock"
        or "tcp://127.0.0.1:1234".
        """
        socket = self.context.socket(zmq.ROUTER)
        socket.bind(endpoint)

        workers_socket = self.context.socket(zmq.DEALER)
        workers_socket.bind(f"inproc://{id(self)}")

        for _ in range(self.worker_count):
            t = threading.Thread(target=self._run_worker, daemon=True)
            t.start()

        log.debug(f"serving {self.service.__class__.__name__} on {endpoint}")

        zmq.proxy(socket, workers_socket)

        assert False, "unreachable"

    def _run_worker(self) -> NoReturn:
        """Request/response loop to handle calls for a single worker thread."""
        socket = self.context.socket(zmq.REP)
        socket.connect(f"inproc://{id(self)}")

        while True:
            token, function, *args = self._encoding.unpack(socket.recv())

            if token != self.token:
                socket.send(self._encoding.pack((ReturnType.TOKEN_ERROR.value, None)))
                continue

            try:
                ret = self._call(function, args)
                socket.send(self._encoding.pack((ReturnType.NORMAL.value, ret)))
            except Exception as e:
                socket.send(self._encoding.pack((ReturnType.EXCEPTION.value, e)))

    def _call(self, function: Optional[str], args: List[Any]) -> Any:
        """Invoke an exposed method of the service (None is a ping)."""
        if function is None:
            return None
        elif function not in self._exposed:
            raise AttributeError(f"no such call '{function}'")
        else:
            return getattr(self.service, function)(*args)


class Client(Base):
    """
    RPC client to invoke methods on a service instance exposed by an RPC server.

    A single client can be used by multiple threads and will internally create a socket
    per thread.

    Example:
    ```
    driver = rpc.Client(VolumeDriverService, "ipc:///run/cephvol/cephvol.sock")
    mountpoint = driver.mount("data", "c1")
    ```
    """

    def __init__(
        self,
        service_type: type,
        endpoint: str,
        token: Optional[str] = None,
        timeout_ms: int = -1,
    ) -> None:
        """Instantiate an RPC client for the service type at the given endpoint."""
        super().__init__(service_type)

        self.endpoint = endpoint
        self.token = token
        self.timeout_ms = timeout_ms

        self.context = zmq.Context()

        self._socket_pool: Dict[threading.Thread, zmq.Socket] = {}
        self._socket_pool_lock = threading.Lock()

    def _socket(self) -> zmq.Socket:
        """
        Return the socket of the current thread.

        REQUEST-REPLY needs to happen in lockstep per socket, hence one per thread.
        """
        t = threading.current_thread()

        with self._socket_pool_lock:
            if t not in self._socket_pool:
                sock = self.context.socket(zmq.REQ)

                sock.setsockopt(zmq.RCVTIMEO, self.timeout_ms)
                sock.setsockopt(zmq.SNDTIMEO, self.timeout_ms)

                sock.connect(self.endpoint)

                self._socket_pool[t] = sock

            return self._socket_pool[t]

    def ping(self, timeout_ms: Optional[int] = None) -> None:
        """Check if the service is available, optionally with a different timeout."""
        sock = self._socket()

        if timeout_ms is not None:
            sock.setsockopt(zmq.RCVTIMEO, timeout_ms)
            sock.setsockopt(zmq.SNDTIMEO, timeout_ms)

        try:
            self.__getattr__(None)()
        finally:
            if timeout_ms is not None and not sock.closed:
                sock.setsockopt(zmq.RCVTIMEO, self.timeout_ms)
                sock.setsockopt(zmq.SNDTIMEO, self.timeout_ms)

    def __del__(self) -> None:
        """Close the client sockets and their ZeroMQ context."""
        with self._socket_pool_lock:
            for sock in self._socket_pool.values():
                sock.close(linger=0)

            self.context.destroy()

    @staticmethod
    def _summarize_args(args: tuple) -> Tuple[str, ...]:
        return tuple([summarize(arg) for arg in args])

    def __getattr__(self, name: Optional[str]) -> Callable[..., Any]:
        """Retrieve a wrapper to call the specified remote function."""

        def fn(*args: Any) -> Any:
            """
            Call the remote function with the given arguments.

            Returns its return value or raises the exception it raised. The token is
            sent along with every call.
            """
            sock = self._socket()

            t_call = time.time()

            try:
                sock.send(self._encoding.pack((self.token, name, *args)))
                typ, *ret = self._encoding.unpack(sock.recv())
            except zmq.ZMQError:
                # The REQ socket is stuck in the wrong state after a timeout
                self._discard_socket()
                raise IOError("rpc call timed out")

            if log.isEnabledFor(logging.DEBUG):
                t_millis = round((time.time() - t_call) * 1000)
                log.debug(f"rpc::{name}{self._summarize_args(args)} - {t_millis} ms")

            if typ == ReturnType.NORMAL.value:
                return ret[0] if len(ret) == 1 else ret
            elif typ == ReturnType.EXCEPTION.value:
                raise ret[0]
            elif typ == ReturnType.TOKEN_ERROR.value:
                raise InvalidTokenError("token mismatch between client and server")
            else:
                raise ValueError(f"unexpected return type {typ}")

        return fn

    def _discard_socket(self) -> None:
        with self._socket_pool_lock:
            sock = self._socket_pool.pop(threading.current_thread(), None)

        if sock is not None:
            sock.close(linger=0)
