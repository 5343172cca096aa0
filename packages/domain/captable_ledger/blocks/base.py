"""Base classes for pipeline blocks.

This module provides the foundation for running a cap table job as a set of
blocks:
- Block abstract base class
- BlockContext for passing data between blocks
- BlockExecutor for dependency resolution and execution
- Topological sort for DAG execution order
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field

from ..errors import CircularDependencyError

logger = logging.getLogger(__name__)


# =============================================================================
# Block Context
# =============================================================================

@dataclass
class BlockContext:
    """Named values shared between blocks.

    Blocks read their inputs from context and write their outputs to it.

    Example:
        context = BlockContext()
        context.set("transactions", records)
        context.set("report_config", CapTableReportCFG(cutoff_date=date(2020, 3, 1)))

        CapTableReportBlock().execute(context)
        report = context.get("cap_table_report")
    """

    _data: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str) -> Any:
        """Get value from context.

        Raises:
            KeyError: If key not found in context
        """
        if key not in self._data:
            raise KeyError(f"Key '{key}' not found in context. Available keys: {list(self._data.keys())}")
        return self._data[key]

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def has(self, key: str) -> bool:
        return key in self._data

    def keys(self) -> List[str]:
        return list(self._data.keys())


# =============================================================================
# Block Base Class
# =============================================================================

class Block(ABC):
    """One step of a cap table job.

    A Block declares which context keys it reads and writes and implements
    its work in execute(). Declared keys let the executor order blocks
    without the caller caring about sequence.
    """

    @abstractmethod
    def inputs(self) -> List[str]:
        """Context keys this block reads."""

    @abstractmethod
    def outputs(self) -> List[str]:
        """Context keys this block writes."""

    @abstractmethod
    def execute(self, context: BlockContext) -> None:
        """Read inputs from context, compute, write outputs to context."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(inputs={self.inputs()}, outputs={self.outputs()})"


# =============================================================================
# Dependency Resolution
# =============================================================================

def topological_sort(blocks: List[Block]) -> List[Block]:
    """Sort blocks so every block runs after the blocks producing its inputs.

    Uses Kahn's algorithm. Blocks with no ordering constraint between them
    keep their relative input order.

    Raises:
        ValueError: If two blocks declare the same output
        CircularDependencyError: If blocks have circular dependencies

    Example:
        report_block.outputs() = ["cap_table_report"]
        table_block.inputs() = ["cap_table_report"]

        topological_sort([table_block, report_block])
        → [report_block, table_block]
    """
    producers: Dict[str, Block] = {}
    for block in blocks:
        for output_key in block.outputs():
            if output_key in producers:
                raise ValueError(
                    f"Multiple blocks produce '{output_key}': "
                    f"{producers[output_key]} and {block}"
                )
            producers[output_key] = block

    in_degree: Dict[Block, int] = {block: 0 for block in blocks}
    dependents: Dict[Block, List[Block]] = {block: [] for block in blocks}

    for block in blocks:
        for input_key in block.inputs():
            # Inputs nobody produces must come from the initial context
            if input_key in producers:
                dependents[producers[input_key]].append(block)
                in_degree[block] += 1

    queue: List[Block] = [block for block in blocks if in_degree[block] == 0]
    ordered: List[Block] = []

    while queue:
        current = queue.pop(0)
        ordered.append(current)
        for dependent in dependents[current]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                queue.append(dependent)

    if len(ordered) != len(blocks):
        remaining = [block for block in blocks if in_degree[block] > 0]
        raise CircularDependencyError(
            f"Circular dependency detected among blocks: {remaining}"
        )

    return ordered


# =============================================================================
# Block Executor
# =============================================================================

class BlockExecutor:
    """Executes blocks in dependency order.

    Example:
        executor = BlockExecutor([OwnershipTableBlock(), CapTableReportBlock()])
        context = BlockContext()
        context.set("transactions", records)
        context.set("report_config", CapTableReportCFG())

        executor.execute(context)
        ownership_df = context.get("ownership_table")
    """

    def __init__(self, blocks: List[Block]):
        self.blocks = blocks
        self._sorted_blocks: Optional[List[Block]] = None

    def execute(self, context: BlockContext) -> BlockContext:
        """Execute all blocks in dependency order.

        Returns:
            The same context, with every block's outputs written

        Raises:
            CircularDependencyError: If blocks have circular dependencies
            KeyError: If a required input is not available in context
            ValueError: If a block does not write a declared output
        """
        if self._sorted_blocks is None:
            self._sorted_blocks = topological_sort(self.blocks)

        for block in self._sorted_blocks:
            self._validate_inputs(block, context)
            logger.debug("Executing %r", block)
            block.execute(context)
            self._validate_outputs(block, context)

        return context

    def _validate_inputs(self, block: Block, context: BlockContext) -> None:
        for input_key in block.inputs():
            if not context.has(input_key):
                raise KeyError(
                    f"Block {block} requires input '{input_key}' but it's not in context. "
                    f"Available keys: {context.keys()}"
                )

    def _validate_outputs(self, block: Block, context: BlockContext) -> None:
        for output_key in block.outputs():
            if not context.has(output_key):
                raise ValueError(
                    f"Block {block} declared output '{output_key}' but didn't write it to context"
                )
