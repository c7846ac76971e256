"""Response entity - an answer produced by a query engine."""

from pydantic import BaseModel, Field

from docindex.entities.node import NodeWithScore


class Response(BaseModel):
    """Answer text plus the nodes it was synthesized from."""

    response: str
    source_nodes: list[NodeWithScore] = Field(default_factory=list)

    def __str__(self) -> str:
        return self.response
