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

import numpy as np
from .rule_gene import RuleCandidate
from .rule_objfcn import support_only
from .pareto_util import fitness_matrix, dominance_matrix

def gaussian_mutate(candidate, rng, probability=1.0, std=0.15):
    """Performs Gaussian mutation on the intervals of a candidate.

    Each active or fixed gene is, with the given probability, shifted by
    ``noise ~ Normal(0, std*(max-min))``.  Both bounds move by the same amount
    so the interval keeps its width unless it hits the attribute range.
    Default genes of non-fixed attributes are never touched, since that would
    turn them into active restrictions.

    Parameters
    ----------
    candidate : RuleCandidate
    rng : numpy.random.Generator
    probability : float
        the probability of mutating each eligible gene
    std : float
        the standard deviation of the noise relative to the attribute range

    Returns
    -------
    a new RuleCandidate, or the given one if no gene changed
    """
    genes = []
    changed = False

    for gene in candidate.genes:
        if (gene.is_default and not gene.fixed) or rng.random() >= probability:
            genes.append(gene)
            continue

        noise = rng.normal(0.0, 1.0) * std * (gene.max - gene.min)
        lower = min(max(gene.lower + noise, gene.min), gene.max)
        upper = min(max(gene.upper + noise, lower), gene.max)

        genes.append(gene._replace(lower=lower, upper=upper))
        changed = True

    if not changed:
        return candidate

    return RuleCandidate(genes)

def gap_to_range(x, lower, upper):
    """Distance from x to [lower, upper]; zero if inside."""
    return max(0, lower - x) + max(0, x - upper)

class SupportConstraint(object):
    """Keeps rule supports within [min_support, max_support].

    Infeasible candidates are repaired by sampling fresh candidates from the
    factory.
    """

    def __init__(self, config, factory, max_attempts=10):
        self.config = config
        self.factory = factory
        self.max_attempts = max_attempts
        self.min_support = config.min_support
        self.max_support = config.max_support

    def support(self, candidate):
        if candidate.is_evaluated:
            return int(candidate.fitness[0])
        else:
            return support_only(candidate, self.config)

    def test(self, candidate):
        if not candidate.is_valid():
            return False

        return self.min_support <= self.support(candidate) <= self.max_support

    def repair(self, candidate):
        """Replaces an infeasible candidate.

        Returns the first feasible fresh candidate.  If none of the attempts
        is feasible, the attempt closest to the support range is returned,
        provided it is strictly closer than the given candidate.
        """
        best = None
        best_gap = None

        for _ in range(self.max_attempts):
            attempt = self.factory.new_candidate()
            support = support_only(attempt, self.config)

            if self.min_support <= support <= self.max_support:
                return attempt

            gap = gap_to_range(support, self.min_support, self.max_support)

            if best_gap is None or gap < best_gap:
                best = attempt
                best_gap = gap

        if candidate.is_valid():
            gap0 = gap_to_range(self.support(candidate), self.min_support,
                                self.max_support)
        else:
            gap0 = float("inf")

        if best is not None and best_gap < gap0:
            return best
        else:
            return candidate

    def __call__(self, candidate):
        if self.test(candidate):
            return candidate
        else:
            return self.repair(candidate)

def nondominated_ranks(f):
    """Assigns each point its non-domination rank (0 is the Pareto front)."""
    n = f.shape[0]
    ranks = np.full(n, -1, dtype=int)
    dominates = dominance_matrix(f)
    counts = dominates.sum(axis=0)
    current = np.flatnonzero(counts == 0)
    rank = 0

    while current.shape[0] > 0:
        ranks[current] = rank
        counts = counts - dominates[current].sum(axis=0)
        counts[ranks >= 0] = -1
        current = np.flatnonzero(counts == 0)
        rank += 1

    assert np.all(ranks >= 0)
    return ranks

def crowding_distance(f):
    """Standard NSGA-II crowding distance of the points of one front."""
    n = f.shape[0]
    distance = np.zeros(n)

    if n <= 2:
        distance[:] = np.inf
        return distance

    for k in range(f.shape[1]):
        order = np.argsort(f[:, k], kind="stable")
        values = f[order, k]
        spread = values[-1] - values[0]

        distance[order[0]] = np.inf
        distance[order[-1]] = np.inf

        if spread > 0:
            distance[order[1:-1]] += (values[2:] - values[:-2]) / spread

    return distance

def nsga2_select(population, count):
    """Selects candidates by NSGA-II crowded comparison.

    Candidates are ordered by non-domination rank (ascending) and crowding
    distance (descending) and taken in that order, cycling through the
    population if more candidates are requested than available.

    Parameters
    ----------
    population : list of evaluated RuleCandidates
    count : int
        the number of candidates to select

    Returns
    -------
    list of the selected candidates
    """
    if count <= 0 or not population:
        return []

    f = fitness_matrix(population)
    ranks = nondominated_ranks(f)
    distance = np.zeros(f.shape[0])

    for rank in np.unique(ranks):
        members = np.flatnonzero(ranks == rank)
        distance[members] = crowding_distance(f[members])

    order = np.lexsort((-distance, ranks))
    return [population[order[i % len(order)]] for i in range(count)]
