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

import pandas as pd
from .rule_objfcn import rule_stats, quasi_p
from .plotting_util import rule_string, plot_fronts

def indent(lines, amount, ch=' '):
    padding = amount * ch
    return padding + ('\n'+padding).join(lines.split('\n'))

class RuleNodeProperty(object):
    """Generate read-only statistics attributes for a RuleTreeNode."""

    def __init__(self, attribute, doc=None):
        self.attribute = attribute
        self.__doc__ = doc

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self
        return obj.stats[self.attribute]

    def __set__(self, obj, value):
        raise AttributeError("can't set attribute")

    def __delete__(self, obj):
        raise AttributeError("can't delete attribute")

class RuleTreeNode(object):
    '''One committed addition (attribute and interval) in the rule tree.

    The root node has no attribute and stands for the empty rule.  Every
    other node holds the rule of its whole path, i.e., the intervals of all
    attributes from the root down to and including its own addition.

    Attributes
    ----------
    support : int
              number of rows matching the node's rule
    confidence : float
                 fraction of matching rows inside the target interval
    lift : float
           confidence relative to the target base rate
    coverage : float
               fraction of target rows matched by the rule
    attribute : int
                index of the attribute added by this node (None for root)
    interval : tuple
               the committed (lower, upper) interval of the attribute
    rule : OrderedDict
           attribute index to interval for the whole path
    front : list
            the Pareto front produced when this node was committed
    improvement : float
                  front area gained over the parent node's front
    cumulative : float
                 sum of the positive improvements along the path
    '''

    support = RuleNodeProperty('support')
    confidence = RuleNodeProperty('confidence')
    lift = RuleNodeProperty('lift')
    coverage = RuleNodeProperty('coverage')

    def __init__(self, config, parent=None, attribute=None, interval=None,
                 rule=None, front=None, candidate=None, improvement=None):
        """Create a new RuleTreeNode object.

        Parameters
        ----------
        config : SearchConfig
            the session-level configuration used to compute statistics
        parent : RuleTreeNode, optional
            the parent node, None for the root
        attribute : int, optional
            the attribute added by this node
        interval : tuple, optional
            the committed interval of the attribute
        rule : dict, optional
            attribute index to interval for the whole path
        front : list, optional
            the Pareto front produced for this node
        candidate : RuleCandidate, optional
            the front member the intervals were taken from
        improvement : float, optional
            the front distance to the parent's front
        """
        self.config = config
        self.parent = parent
        self.attribute = attribute
        self.interval = interval
        self.rule = rule if rule is not None else {}
        self.front = front if front is not None else []
        self.candidate = candidate
        self.improvement = improvement
        self.children = []
        self._stats = None

        if parent is None:
            self.depth = 0
            self.cumulative = 0.0
        else:
            self.depth = parent.depth + 1
            self.cumulative = parent.cumulative + max(improvement or 0.0, 0.0)

    def __len__(self):
        """Returns the number of children."""
        return len(self.children)

    def __iter__(self):
        """Iterates over this node and its descendants in DFS order."""
        yield self

        for child in self.children:
            for node in child:
                yield node

    def __str__(self):
        if self.is_root:
            return "Root [%d children]" % len(self.children)

        message = "".join(["Node %s [Depth %d]\n",
                           "    Stats\n",
                           "        Support:     %d\n",
                           "        Confidence:  %f\n",
                           "        Lift:        %f\n",
                           "        Improvement: %f\n",
                           "        Cumulative:  %f\n",
                           "    Rule\n",
                           "%s"])

        return message % (self.name,
                          self.depth,
                          self.support,
                          self.confidence,
                          self.lift,
                          self.improvement,
                          self.cumulative,
                          indent(rule_string(self.rule, self.config.dataset,
                                             separator="\n"), 8))

    @property
    def is_root(self):
        return self.parent is None

    @property
    def name(self):
        if self.is_root:
            return "START"

        return self.config.dataset.names[self.attribute]

    @property
    def path(self):
        """Returns the attribute indices from the root to this node."""
        if self.is_root:
            return []

        return self.parent.path + [self.attribute]

    @property
    def stats(self):
        """Returns the statistics of the node's rule."""
        if self._stats is None:
            self._stats = rule_stats(list(self.rule.items()), self.config)

        return self._stats

    def add_child(self, attribute, rule, front, candidate, improvement):
        """Appends a committed addition below this node.

        Parameters
        ----------
        attribute : int
            the attribute added
        rule : dict
            attribute index to interval for the extended rule
        front : list
            the front produced for the extended rule
        candidate : RuleCandidate
            the front member the intervals were taken from
        improvement : float
            the front distance to this node's front

        Returns
        -------
        the new child node
        """
        child = RuleTreeNode(self.config,
                             parent=self,
                             attribute=attribute,
                             interval=rule[attribute],
                             rule=rule,
                             front=front,
                             candidate=candidate,
                             improvement=improvement)
        self.children.append(child)
        return child

    @property
    def limits(self):
        """Returns the intervals and quasi-p values of the node's rule."""
        qp_values = self.quasi_p()
        names = self.config.dataset.names
        index = [names[i] for i in self.rule]

        box_lim = pd.DataFrame([[lo, hi, qp_values[i]]
                                for i, (lo, hi) in self.rule.items()],
                               index=index,
                               columns=['min', 'max', 'qp values'])
        return box_lim

    def quasi_p(self):
        """Calculates quasi-p values of the rule's attributes.

        Returns
        -------
        dict mapping attribute index to quasi-p value
        """
        return quasi_p(list(self.rule.items()), self.config)

    def show_front(self):
        """Plot this node's front against its parent's front.

        Returns
        -------
        the Matplotlib figure
        """
        series = []

        if self.parent is not None and self.parent.front:
            series.append(("Parent", self.parent.front))

        series.append(("Child", self.front))

        if self.is_root:
            title = "Rule tree root"
        else:
            title = "%s (improvement %.4f)" % (
                    rule_string(self.rule, self.config.dataset,
                                percentiles=False),
                    self.improvement)

        return plot_fronts(series, title=title)
