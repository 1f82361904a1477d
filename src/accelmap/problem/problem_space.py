"""
Problem Space

A collection of problem (workload) descriptions loaded from YAML files,
used to sweep one architecture across several layers.

Usage:
    from accelmap.problem import ProblemSpace

    space = ProblemSpace("resnet")
    space.initialize_from_file_list(["conv1.yaml", "conv2.yaml"])
    for i in range(space.size):
        node = space.get_node(i)
        print(node.name, node.yaml)
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Union

import yaml

logger = logging.getLogger(__name__)


@dataclass
class ProblemSpaceNode:
    """One problem: the file it came from and its parsed YAML contents."""
    name: str = ""
    yaml: Any = None


@dataclass
class ProblemSpace:
    """Ordered list of problem descriptions."""
    name: str = ""
    problems: List[ProblemSpaceNode] = field(default_factory=list)

    def initialize_from_file(self, filename: Union[str, Path]):
        """Load a single problem file and append it."""
        with open(filename) as f:
            contents = yaml.safe_load(f)
        self.problems.append(ProblemSpaceNode(str(filename), contents))

    def initialize_from_file_list(self, file_list: List[Union[str, Path]]):
        """Load every file named in the list, in order."""
        for filename in file_list:
            with open(filename) as f:
                contents = yaml.safe_load(f)
            logger.info("Configuring YAML : %s", filename)
            logger.debug("  contents : %s", contents)
            self.problems.append(ProblemSpaceNode(str(filename), contents))

    @property
    def size(self) -> int:
        return len(self.problems)

    def get_node(self, index: int) -> ProblemSpaceNode:
        return self.problems[index]
