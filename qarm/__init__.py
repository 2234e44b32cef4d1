# The QARM module for Python discovers quantitative association rules, i.e.,
# conjunctions of numeric intervals that predict a target interval, using a
# two-objective evolutionary search and a depth-bounded rule tree search.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

"""Quantitative association rules (QARM) for Python.

A quantitative association rule states that observations whose numeric
attributes fall into given intervals tend to have a target attribute inside
an accepted interval, e.g., 0.2 <= x1 <= 0.6 AND 3 <= x2 <= 7 => y in the top
10%.  The antecedent is matched by some number of observations (its
support), and the fraction of those inside the target interval is its
confidence.

This module searches for such rules with a two-objective evolutionary
algorithm that maximizes support and confidence.  Each run yields a Pareto
front of rules trading off the two objectives.  A depth-first tree search
grows rules one attribute at a time: a short evolution proposes the next
attribute, a second evolution refines the intervals, and the addition is
kept only if it pushes the Pareto front up by enough area.

License
-------
Released under the GNU General Public License, version 3 or later.  Copyright
is retained by the respective authors.
"""

from .exceptions import QarmError
from .rule_data import Dataset, PercentileIndex, SearchConfig, resolve_target
from .rule_gene import AttributeGene, RuleCandidate
from .rule_objfcn import evaluate
from .rule_evolve import EvolutionEngine
from .pareto_util import pareto_front, front_distance, average_vertical_distance
from .rule_search import top_attribute, top_range
from .rule_tree import RuleTreeNode
from .rule_alg import TreeSearch, SearchSession

__all__ = ["QarmError", "Dataset", "PercentileIndex", "SearchConfig",
           "resolve_target", "AttributeGene", "RuleCandidate", "evaluate",
           "EvolutionEngine", "pareto_front", "front_distance",
           "average_vertical_distance", "top_attribute", "top_range",
           "RuleTreeNode", "TreeSearch", "SearchSession"]
