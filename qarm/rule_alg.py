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

import logging
from collections import OrderedDict
import numpy as np
import pandas as pd
from .exceptions import QarmError
from .rule_data import Dataset, SearchConfig, resolve_target
from .rule_search import top_attribute, top_range
from .rule_tree import RuleTreeNode
from .pareto_util import front_distance
from .plotting_util import rule_string

class SearchSession(object):
    """Mutable state of one tree search traversal.

    Holds the random generator, the set of attributes used on the current
    path, the stack of fronts along the current path and the rule tree.  The
    used set and the front stack are only changed inside the DFS and are
    restored when a recursive call returns.  A session is not reentrant.
    """

    def __init__(self, config, random_state=None):
        self.config = config
        self.rng = np.random.default_rng(random_state)
        self.used = set()
        self.fronts = []
        self.root = RuleTreeNode(config)
        self.paths = []

    @property
    def parent_front(self):
        if self.fronts:
            return self.fronts[-1]
        return None

class TreeSearch(object):
    """Quantitative association rule tree search.

    Builds a tree of rules predicting that a target attribute falls into an
    accepted interval.  Each node adds one attribute and interval to the rule
    of its parent.  The attribute is proposed by a short evolutionary run
    (:func:`top_attribute`), its interval, together with new intervals for
    the attributes already in the rule, by a second run (:func:`top_range`).
    A node is only committed if its Pareto front in the support/confidence
    plane improves the area under the parent's front by at least the
    improvement threshold.  The search is depth-first and bounded by the
    maximum depth and the maximum number of children per node.

    The threshold also applies to the children of the root, whose baseline
    is an empty front, i.e., the improvement of a first attribute is the
    area under its own front.  For a rare target that area can stay below
    the default threshold of 0.1, leaving the tree empty; lower the
    threshold (e.g., to 0.0) to always commit the root's children.
    """

    def __init__(self,
                 x,
                 target,
                 interval=None,
                 percentiles=None,
                 names=None,
                 include=None,
                 exclude=None,
                 pop_size_attr_first=100,
                 max_gen_attr_first=100,
                 pop_size_attr_parent=500,
                 max_gen_attr_parent=200,
                 pop_size_range=200,
                 max_gen_range=500,
                 p_mutation=1.0,
                 std_mutation=0.15,
                 offspring_fraction=0.75,
                 max_repairs=10,
                 immigrant_fraction=0.0,
                 max_depth=2,
                 max_children=1,
                 max_first_children=4,
                 improvement_threshold=0.1,
                 min_support=1,
                 max_support=None,
                 decimals=4,
                 random_state=None):
        """Creates a new TreeSearch object.

        Parameters
        ----------
        x : a matrix-like object (pandas.DataFrame, numpy.recarray, etc.) or
            a Dataset
            the data, including the target column
        target : str or int
            the name or index of the target column
        interval : tuple, optional
            literal (lower, upper) target interval, None meaning the column
            minimum or maximum
        percentiles : tuple, optional
            (lower, upper) target percentiles in [0, 1], used if no interval
            is given (default: (0.9, 1.0))
        names : list of str, optional
            the column names if x does not carry them
        include : list of str, optional
            the columns included in the analysis
        exclude : list of str, optional
            the columns excluded from the analysis
        pop_size_attr_first, max_gen_attr_first : int
            population size and generations when proposing the first attribute
        pop_size_attr_parent, max_gen_attr_parent : int
            population size and generations when proposing further attributes
        pop_size_range, max_gen_range : int
            population size and generations when refining intervals
        p_mutation : float (default: 1.0)
            probability of mutating an eligible gene
        std_mutation : float (default: 0.15)
            mutation noise relative to the attribute range
        offspring_fraction : float (default: 0.75)
            fraction of each generation produced as offspring
        max_repairs : int (default: 10)
            fresh candidates tried when repairing an infeasible candidate
        immigrant_fraction : float (default: 0.0)
            fraction of survivors replaced by fresh candidates
        max_depth : int (default: 2)
            maximum number of attributes in a rule
        max_children : int (default: 1)
            maximum number of children of an inner node
        max_first_children : int (default: 4)
            maximum number of children of the root
        improvement_threshold : float (default: 0.1)
            minimum front area gain for committing a node
        min_support : int (default: 1)
            minimum number of rows matched by a rule
        max_support : int, optional
            maximum number of rows matched by a rule (default: all rows)
        decimals : int (default: 4)
            rounding of reported ranges
        random_state : None, int, or numpy.random.Generator
            seeds the generator shared by the whole search
        """
        if isinstance(x, Dataset):
            dataset = x
        else:
            dataset = Dataset(x, names=names, include=include, exclude=exclude)

        target, target_interval = resolve_target(dataset, target,
                                                 interval=interval,
                                                 percentiles=percentiles)

        if max_depth < 0:
            raise QarmError("max_depth must not be negative")

        if max_children < 0 or max_first_children < 0:
            raise QarmError("child limits must not be negative")

        for size in (pop_size_attr_first, pop_size_attr_parent, pop_size_range):
            if size <= 0:
                raise QarmError("population sizes must be positive")

        for count in (max_gen_attr_first, max_gen_attr_parent, max_gen_range):
            if count < 0:
                raise QarmError("generation counts must not be negative")

        self.dataset = dataset
        self.config = SearchConfig.create(dataset,
                                          target,
                                          target_interval,
                                          min_support=min_support,
                                          max_support=max_support)
        self.pop_size_attr_first = pop_size_attr_first
        self.max_gen_attr_first = max_gen_attr_first
        self.pop_size_attr_parent = pop_size_attr_parent
        self.max_gen_attr_parent = max_gen_attr_parent
        self.pop_size_range = pop_size_range
        self.max_gen_range = max_gen_range
        self.max_depth = max_depth
        self.max_children = max_children
        self.max_first_children = max_first_children
        self.improvement_threshold = improvement_threshold
        self.decimals = decimals
        self.random_state = random_state
        self.engine_options = {"p_mutation" : p_mutation,
                               "std_mutation" : std_mutation,
                               "offspring_fraction" : offspring_fraction,
                               "max_repairs" : max_repairs,
                               "immigrant_fraction" : immigrant_fraction}
        self.session = None

        logging.getLogger(__name__).info("target %s in [%g, %g]" % (
                dataset.names[target], target_interval[0], target_interval[1]))

    @property
    def target(self):
        return self.config.target

    @property
    def target_interval(self):
        return self.config.target_interval

    @property
    def root(self):
        """Returns the root of the rule tree found by :meth:`find_tree`."""
        if self.session is None:
            return None
        return self.session.root

    def nodes(self):
        """Returns all non-root nodes of the rule tree in DFS order."""
        if self.session is None:
            return []
        return [node for node in self.session.root if not node.is_root]

    @property
    def rules(self):
        """Returns the committed rules, in the order they were found.

        Each rule is a list of (name, lower, upper) tuples.
        """
        if self.session is None:
            return []

        names = self.dataset.names
        return [[(names[i], lo, hi) for i, (lo, hi) in node.rule.items()]
                for node in self.session.paths]

    @property
    def stats(self):
        """Returns the statistics for all rule tree nodes.

        Returns
        -------
        a Pandas DataFrame storing the stats for each node
        """
        nodes = self.nodes()
        stats = []

        for node in nodes:
            entry = {"rule" : rule_string(node.rule, self.dataset),
                     "depth" : node.depth,
                     "improvement" : node.improvement,
                     "cumulative" : node.cumulative}
            entry.update(node.stats)
            stats.append(entry)

        index = pd.Index(['Node %d' % (i+1) for i in range(len(stats))])
        return pd.DataFrame(stats, index=index)

    @property
    def limits(self):
        """Returns the intervals of all rule tree nodes.

        Returns
        -------
        a Pandas DataFrame with one (min, max) column pair per node and one
        row per attribute restricted in any node
        """
        nodes = self.nodes()
        names = self.dataset.names
        index = ["node {}".format(i+1) for i in range(len(nodes))]

        attributes = []

        for node in nodes:
            for i in node.rule:
                if i not in attributes:
                    attributes.append(i)

        columns = pd.MultiIndex.from_product([index, ['min', 'max']])
        df_limits = pd.DataFrame(np.full((len(attributes), len(nodes)*2), np.nan),
                                 index=[names[i] for i in attributes],
                                 columns=columns)

        for label, node in zip(index, nodes):
            for i, (lo, hi) in node.rule.items():
                df_limits.loc[names[i], (label, 'min')] = lo
                df_limits.loc[names[i], (label, 'max')] = hi

        return df_limits

    def search_universe(self, session, exclude=()):
        """Returns the attributes that may still extend the current rule."""
        return [i for i in range(self.dataset.m)
                if i != self.config.target and
                   i not in session.used and
                   i not in exclude and
                   not self.dataset.is_constant(i)]

    def find_tree(self):
        """Runs the depth-first rule tree search.

        Returns
        -------
        the root RuleTreeNode
        """
        logger = logging.getLogger(__name__)

        self.session = SearchSession(self.config, self.random_state)
        self._expand(self.session, self.session.root)

        logger.info("found %d rules" % len(self.session.paths))
        return self.session.root

    def _propose(self, session, prefix, universe):
        logger = logging.getLogger(__name__)
        parent_front = session.parent_front

        if parent_front:
            population_size = self.pop_size_attr_parent
            generations = self.max_gen_attr_parent
        else:
            population_size = self.pop_size_attr_first
            generations = self.max_gen_attr_first

        logger.info("searching for the best attribute to add to %s" %
                    (rule_string(prefix, self.dataset) or "the empty rule"))

        attribute = top_attribute(self.config,
                                  prefix,
                                  universe,
                                  parent_front=parent_front,
                                  population_size=population_size,
                                  generations=generations,
                                  random_state=session.rng,
                                  **self.engine_options)

        if attribute is None:
            return None

        logger.info("searching for the best range of %s" %
                    ", ".join(self.dataset.names[i]
                              for i in [p[0] for p in prefix] + [attribute]))

        result = top_range(self.config,
                           [p[0] for p in prefix] + [attribute],
                           parent_front=parent_front,
                           population_size=self.pop_size_range,
                           generations=self.max_gen_range,
                           random_state=session.rng,
                           decimals=self.decimals,
                           **self.engine_options)

        if result.candidate is None:
            return None

        improvement = front_distance(parent_front,
                                     result.front,
                                     self.config.min_support,
                                     self.config.max_support)
        logger.info("front area improvement = %.4f" % improvement)

        return attribute, result, improvement

    def _expand(self, session, node):
        logger = logging.getLogger(__name__)

        prefix = list(node.rule.items())
        limit = self.max_first_children if node.is_root else self.max_children
        committed = []

        while len(prefix) < self.max_depth and len(committed) < limit:
            universe = self.search_universe(session, exclude=committed)

            if not universe:
                logger.info("all available attributes have been considered")
                break

            proposal = self._propose(session, prefix, universe)

            if proposal is None:
                logger.info("nothing to add anymore")
                break

            attribute, result, improvement = proposal

            if improvement < self.improvement_threshold:
                logger.info("addition of %s rejected (below threshold %g)" %
                            (self.dataset.names[attribute],
                             self.improvement_threshold))
                break

            rule = OrderedDict(result.intervals)
            child = node.add_child(attribute, rule, result.front,
                                   result.candidate, improvement)
            session.paths.append(child)

            session.fronts.append(result.front)
            session.used.add(attribute)

            try:
                self._expand(session, child)
            finally:
                session.fronts.pop()
                session.used.discard(attribute)

            committed.append(attribute)
