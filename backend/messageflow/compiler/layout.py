from messageflow.ir.schema import Operation, Schema


def _operation_sort_key(op: Operation):
    messages = op.channel.messages
    return (
        op.action.value,
        op.channel.name,
        # operations without messages go after those with messages
        0 if messages else 1,
        messages[0].name if messages else "",
    )


def sort_schema(schema: Schema) -> Schema:
    """Deterministic ordering of services and their operations for stable output."""
    services = [
        service.model_copy(
            update={"operations": sorted(service.operations, key=_operation_sort_key)}
        )
        for service in schema.services
    ]
    services.sort(key=lambda s: s.name)
    return Schema(services=services)
