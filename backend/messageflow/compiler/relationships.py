# backend/messageflow/compiler/relationships.py

from typing import Dict, List, Set

from messageflow.compiler.types import Connection
from messageflow.ir.schema import Action, Schema, Service


class ServiceRelationshipInference:
    """
    Deterministic Service → Service relationship inference.

    Rules:
    1. A → B when A sends on a channel name that B receives on
    2. A → B and B → A collapse into one bidirectional connection,
       lexicographically smaller service name first
    3. Label: "Req" for request/reply traffic, "Pub" for plain publish,
       "Pub/Req" when the pair shows both
    """

    def __init__(self, schema: Schema):
        self.schema = schema
        self._services: Dict[str, Service] = {
            svc.name: svc for svc in schema.services
        }

    def directed_pairs(self) -> Dict[str, Set[str]]:
        pairs: Dict[str, Set[str]] = {}

        for service in self.schema.services:
            sent = {
                op.channel.name
                for op in service.operations
                if op.action == Action.SEND
            }
            if not sent:
                continue

            for other in self.schema.services:
                if other.name == service.name:
                    continue

                if any(
                    op.action == Action.RECEIVE and op.channel.name in sent
                    for op in other.operations
                ):
                    pairs.setdefault(service.name, set()).add(other.name)

        return pairs

    def connections(self) -> List[Connection]:
        pairs = self.directed_pairs()
        unique: Dict[tuple[str, str], Connection] = {}

        for sender, receivers in pairs.items():
            for receiver in receivers:
                bidirectional = sender in pairs.get(receiver, set())

                if bidirectional:
                    source, target = sorted((sender, receiver))
                else:
                    source, target = sender, receiver

                key = (source, target)
                if key in unique:
                    continue

                unique[key] = Connection(
                    source=source,
                    target=target,
                    label=self.label(source, target),
                    bidirectional=bidirectional,
                )

        return [unique[key] for key in sorted(unique)]

    def label(self, first: str, second: str) -> str:
        has_pub = False
        has_req = False

        svc1 = self._services.get(first, Service())
        svc2 = self._services.get(second, Service())

        for op1 in svc1.operations:
            for op2 in svc2.operations:
                if op1.channel.name != op2.channel.name:
                    continue

                if op1.action == Action.SEND and op2.action == Action.RECEIVE:
                    sender_op = op1
                elif op1.action == Action.RECEIVE and op2.action == Action.SEND:
                    sender_op = op2
                else:
                    continue

                if sender_op.reply is not None:
                    has_req = True
                else:
                    has_pub = True

        if has_pub and has_req:
            return "Pub/Req"
        if has_req:
            return "Req"
        return "Pub"


def infer_connections(schema: Schema) -> List[Connection]:
    return ServiceRelationshipInference(schema).connections()


def determine_connection_label(schema: Schema, first: str, second: str) -> str:
    return ServiceRelationshipInference(schema).label(first, second)
