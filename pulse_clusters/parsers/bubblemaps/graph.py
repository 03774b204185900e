"""Transaction graph between tracked top holders.

Directed multigraph: one node per holder, one edge per transfer event.
Transfers touching any address outside the holder set are dropped.
"""

from collections.abc import Iterable, Mapping

from loguru import logger

from pulse_clusters.parsers.blockscout.models import TransferRecord
from pulse_clusters.parsers.bubblemaps.models import TokenHolder, TransactionEdge, TransactionNode


def _edge_key(edge: TransactionEdge) -> tuple:
    return (edge.hash, edge.log_index, edge.from_address, edge.to_address, edge.token_address)


def build_transaction_graph(
    top_holders: Iterable[TokenHolder],
    all_transfers: Mapping[str, list[TransferRecord]],
    *,
    dedupe: bool = True,
    min_transaction_amount: float | None = None,
) -> dict[str, TransactionNode]:
    """Build holder -> node graph from per-holder transfer lists.

    Every edge is attributed to its sender's node, whichever holder's
    list surfaced it. With ``dedupe`` the same on-chain transfer found in
    both endpoints' lists is recorded once.
    """
    graph: dict[str, TransactionNode] = {}
    for holder in top_holders:
        try:
            balance = float(holder.balance)
        except ValueError:
            balance = 0.0
        graph[holder.address] = TransactionNode(
            address=holder.address,
            balance=balance,
            percentage=holder.percentage,
        )

    seen: set[tuple] = set()
    duplicates = 0
    skipped = 0

    for transfers in all_transfers.values():
        for transfer in transfers:
            from_addr = transfer.from_address
            to_addr = transfer.to_address

            if from_addr not in graph or to_addr not in graph or from_addr == to_addr:
                continue

            amount = transfer.amount
            if amount is None:
                skipped += 1
                continue
            if min_transaction_amount is not None and amount < min_transaction_amount:
                continue

            edge = TransactionEdge(
                from_address=from_addr,
                to_address=to_addr,
                amount=amount,
                timestamp=transfer.timestamp or "",
                token_address=transfer.token.address if transfer.token else "",
                hash=transfer.transaction_hash,
                block_number=transfer.block_number,
                log_index=transfer.log_index,
            )

            if dedupe:
                key = _edge_key(edge)
                if key in seen:
                    duplicates += 1
                    continue
                seen.add(key)

            graph[from_addr].add_edge(edge)

    if duplicates or skipped:
        logger.debug(
            f"[CLUSTER] Graph build: {duplicates} duplicate transfers merged, "
            f"{skipped} without a numeric amount skipped"
        )

    return graph


def undirected_adjacency(graph: Mapping[str, TransactionNode]) -> dict[str, set[str]]:
    """Symmetric closure of ``connections``: A->B links both A and B."""
    adjacency: dict[str, set[str]] = {address: set() for address in graph}
    for address, node in graph.items():
        for counterparty in node.connections:
            adjacency[address].add(counterparty)
            adjacency.setdefault(counterparty, set()).add(address)
    return adjacency
