import logging

from messageflow.compiler.keys import operation_key
from messageflow.ir.schema import Operation, Schema, Service

logger = logging.getLogger(__name__)


def merge_schemas(*schemas: Schema) -> Schema:
    """
    Combine independently extracted schemas into one.

    Services are keyed by name. Operations of same-named services are
    unioned by operation key; a later input replaces an earlier operation
    with the same key. Inputs are never mutated.
    """
    if not schemas:
        return Schema(services=[])

    # -------------------------
    # Collect by service name
    # -------------------------
    services: dict[str, Service] = {}
    operations: dict[str, dict[str, Operation]] = {}

    for schema in schemas:
        for service in schema.services:
            if service.name not in services:
                services[service.name] = service
                operations[service.name] = {}

            op_map = operations[service.name]
            for op in service.operations:
                op_map[operation_key(op)] = op

    # -------------------------
    # Rebuild value objects
    # -------------------------
    merged = [
        service.model_copy(update={"operations": list(operations[name].values())})
        for name, service in services.items()
    ]

    logger.debug(
        "merged %d schema(s) into %d service(s)", len(schemas), len(merged)
    )

    return Schema(services=merged)
