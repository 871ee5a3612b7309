"""Custom exceptions for ship log editor operations."""


class ShipLogError(Exception):
    """Base exception for ship log editor operations."""
    pass


class MalformedDocument(ShipLogError):
    """Raised when an imported or persisted document fails structural validation."""
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Malformed document: {reason}")


class NodeNotFoundError(ShipLogError):
    """Raised when a node is not found."""
    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node '{node_id}' not found")


class EdgeNotFoundError(ShipLogError):
    """Raised when an edge is not found."""
    def __init__(self, edge_id: str):
        self.edge_id = edge_id
        super().__init__(f"Edge '{edge_id}' not found")


class ImportInProgress(ShipLogError):
    """Raised when an import is requested while another one is still pending."""
    def __init__(self):
        super().__init__("Another import is already in progress")
