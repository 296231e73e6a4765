from pydantic import BaseModel, ConfigDict, Field


class CliqueFound(BaseModel):
    """One improvement reported by a running search."""

    model_config = ConfigDict(frozen=True)

    nodes: frozenset[int] = Field(
        title="nodes",
        description="The clique found.",
    )
    elapsed_ms: int = Field(
        title="elapsed_ms",
        description="Milliseconds since the solver started.",
    )
    memory_delta_kb: int = Field(
        title="memory_delta_kb",
        description="Growth of the process resident memory since the solver started, in KB.",
    )

    @property
    def size(self) -> int:
        return len(self.nodes)
