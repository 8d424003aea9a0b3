from aduib_naming.transport.grpc_naming import (
    AddressSet,
    GrpcOperation,
    GrpcResolver,
    GrpcUpdate,
    GrpcWatcher,
    to_grpc_updates,
    wrap_resolver,
)

__all__ = [
    "AddressSet",
    "GrpcOperation",
    "GrpcResolver",
    "GrpcUpdate",
    "GrpcWatcher",
    "to_grpc_updates",
    "wrap_resolver",
]
