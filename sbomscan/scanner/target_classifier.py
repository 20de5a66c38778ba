"""Maps raw scan targets to a node identity."""

from sbomscan.consts import CURRENT_DIR, DIR_SCHEME
from sbomscan.models.model_request import NodeType, ScanRequest


def classify_target(source: str, node_type_hint: str, host_name: str) -> tuple[str, NodeType]:
    """Resolve (node_id, node_type) for a scan target.

    First match wins:
        dir:/path or "."      -> (host_name, HOST)
        hint == "container"   -> (source, CONTAINER)
        anything else         -> (source, IMAGE)

    Args:
        source: Target locator
        node_type_hint: Node type supplied by the caller, possibly empty
        host_name: Name of the scanning host

    Returns:
        Tuple of (node_id, node_type)
    """
    if source.startswith(DIR_SCHEME) or source == CURRENT_DIR:
        return host_name, NodeType.HOST
    if node_type_hint == NodeType.CONTAINER.value:
        return source, NodeType.CONTAINER
    return source, NodeType.IMAGE


def resolve_request(request: ScanRequest) -> ScanRequest:
    """Return a copy of request with node_id and node_type filled in."""
    hint = request.node_type.value if isinstance(request.node_type, NodeType) else request.node_type
    node_id, node_type = classify_target(request.source, hint, request.host_name)
    return request.model_copy(update={"node_id": node_id, "node_type": node_type})
