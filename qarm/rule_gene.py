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

from collections import namedtuple
from .exceptions import QarmError

# bound on how often a factory regenerates a candidate whose genes are all
# inert before giving up
MAX_REGENERATE = 100

_AttributeGeneBase = namedtuple("_AttributeGeneBase",
        ["index", "lower", "upper", "min", "max", "fixed"])

class AttributeGene(_AttributeGeneBase):
    """One interval restriction [lower, upper] on a single attribute.

    The gene also remembers the [min, max] range of its attribute and whether
    the attribute is fixed in the current run.  A gene spanning the whole
    range of a non-fixed attribute is a default gene: it does not restrict
    anything and is excluded from the antecedent.
    """

    __slots__ = ()

    @property
    def is_default(self):
        return (self.lower == self.min and self.upper == self.max and
                not self.fixed)

    def is_valid(self):
        return self.min <= self.lower <= self.upper <= self.max

    @classmethod
    def default(cls, index, config):
        lower, upper = config.bounds[index]
        return cls(index, lower, upper, lower, upper,
                   index in config.fixed_set)

    @classmethod
    def random(cls, index, config, rng):
        """Creates a gene with a random interval.

        Two uniform samples are sorted and mapped through the percentile
        provider, so intervals follow the empirical distribution of the
        attribute rather than its raw numeric range.
        """
        lower, upper = config.bounds[index]
        p1, p2 = rng.random(2)
        lo_p, hi_p = min(p1, p2), max(p1, p2)

        lo = max(config.percentiles.value(index, lo_p), lower)
        hi = min(config.percentiles.value(index, hi_p), upper)

        return cls(index, lo, hi, lower, upper, index in config.fixed_set)

    def __str__(self):
        return "%d in [%g, %g] of [%g, %g]" % (self.index, self.lower,
                                                self.upper, self.min, self.max)

class RuleCandidate(object):
    """An ordered collection of genes forming one rule antecedent.

    The candidate also caches its (support, confidence) fitness once it has
    been evaluated.
    """

    def __init__(self, genes, fitness=None):
        self.genes = tuple(genes)
        self.fitness = fitness

    def __len__(self):
        return len(self.genes)

    def __iter__(self):
        return iter(self.genes)

    def __repr__(self):
        return "RuleCandidate(%s, fitness=%s)" % (
                ", ".join(str(g) for g in self.active_genes()), self.fitness)

    @property
    def is_evaluated(self):
        return self.fitness is not None

    def active_genes(self):
        return [g for g in self.genes if not g.is_default]

    def active_attributes(self):
        return frozenset(g.index for g in self.genes if not g.is_default)

    def is_valid(self):
        if not all(g.is_valid() for g in self.genes):
            return False

        indices = [g.index for g in self.genes]

        if len(set(indices)) != len(indices):
            return False

        return any(not g.is_default for g in self.genes)

    def intervals(self):
        """Returns a dict mapping each active attribute to its interval."""
        return dict((g.index, (g.lower, g.upper)) for g in self.active_genes())

    def rebind(self, config):
        """Copies this candidate with fixed flags taken from the given config.

        The intervals are kept as they are, the fitness is cleared.
        """
        fixed = config.fixed_set
        return RuleCandidate([g._replace(fixed=g.index in fixed)
                              for g in self.genes])

class IndexPool(object):
    """Draws attribute indices without replacement, refilling when empty."""

    def __init__(self, indices, rng):
        self.all = list(indices)
        self.rng = rng
        self._remaining = list(self.all)

    def take(self, n=1):
        if not self.all or n <= 0:
            return []

        if len(self._remaining) < n:
            self._remaining = list(self.all)

        selected = []

        for _ in range(min(n, len(self._remaining))):
            i = int(self.rng.integers(len(self._remaining)))
            selected.append(self._remaining.pop(i))

        return selected

class CandidateFactory(object):
    """Creates fresh random candidates for a search config.

    Two strategies are supported.  In ``'pool'`` mode a candidate holds one
    gene per fixed attribute and at most one extra gene drawn from a rotating
    pool over the search attributes.  In ``'full'`` mode a candidate holds a
    gene for every non-target attribute, all default except the fixed
    attributes and one randomly chosen search attribute.
    """

    def __init__(self, config, rng):
        self.config = config
        self.rng = rng

        fixed = config.fixed_set
        self.fixed = [i for i in config.fixed if i != config.target]
        self.search = [i for i in config.search
                       if i != config.target and i not in fixed]
        self.pool = IndexPool(self.search, rng)

    def __call__(self):
        return self.new_candidate()

    def new_candidate(self):
        for _ in range(MAX_REGENERATE):
            if self.config.strategy == "full":
                candidate = self._full()
            else:
                candidate = self._pool()

            if len(candidate) == 0:
                raise QarmError("rule candidate would be empty, fixed and "
                                "search attributes are too small")

            if candidate.is_valid():
                return candidate

        raise QarmError("unable to create a valid rule candidate after %d "
                        "attempts" % MAX_REGENERATE)

    def _pool(self):
        genes = [AttributeGene.random(i, self.config, self.rng)
                 for i in self.fixed]

        if self.search:
            index = self.pool.take(1)[0]
            genes.append(AttributeGene.random(index, self.config, self.rng))

        return RuleCandidate(genes)

    def _full(self):
        chosen = None

        if self.search:
            chosen = self.search[int(self.rng.integers(len(self.search)))]

        active = set(self.fixed)

        if chosen is not None:
            active.add(chosen)

        genes = []

        for i in range(self.config.dataset.m):
            if i == self.config.target:
                continue
            elif i in active:
                genes.append(AttributeGene.random(i, self.config, self.rng))
            else:
                genes.append(AttributeGene.default(i, self.config))

        return RuleCandidate(genes)
