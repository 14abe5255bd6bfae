"""neuroswc.errors – failure and warning types raised by the pipeline."""

__all__ = ["MalformedPointError", "DanglingParentError", "EmptyMorphologyWarning"]


class MalformedPointError(ValueError):
    """A kept SWC line has a required field that is not a number."""

    def __init__(self, lineno: int, line: str, reason: str):
        self.lineno = lineno
        self.line = line
        self.reason = reason
        super().__init__(f"line {lineno}: {reason} ({line.strip()!r})")


class DanglingParentError(ValueError):
    """A sample declares a parent ID that no sample carries."""

    def __init__(self, node_id: int, parent_id: int):
        self.node_id = node_id
        self.parent_id = parent_id
        super().__init__(
            f"node {node_id} references parent {parent_id}, which does not exist"
        )


class EmptyMorphologyWarning(UserWarning):
    """Neither a soma nor a single section could be reconstructed."""
