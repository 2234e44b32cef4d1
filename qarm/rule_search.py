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
from collections import namedtuple, OrderedDict
from .exceptions import QarmError
from .rule_evolve import EvolutionEngine
from .rule_objfcn import confusion_counts, error_rates, balance_score
from .pareto_util import pareto_front, average_vertical_distance

TopRangeResult = namedtuple("TopRangeResult",
        ["ranges", "intervals", "front", "candidate", "score"])

def _prefix_indices(prefix):
    """Returns the attribute indices of a prefix.

    A prefix is a list of attribute indices or of (index, interval) pairs.
    """
    indices = []

    for entry in prefix:
        if isinstance(entry, tuple):
            indices.append(entry[0])
        else:
            indices.append(entry)

    return indices

def group_by_attribute(front, fixed):
    """Groups front members by their active attributes outside fixed.

    Groups are ordered by the first appearance of their attribute.
    """
    groups = OrderedDict()

    for candidate in front:
        for gene in candidate.genes:
            if not gene.is_default and gene.index not in fixed:
                groups.setdefault(gene.index, []).append(candidate)

    return groups

def top_attribute(config,
                  prefix,
                  search,
                  parent_front=None,
                  population_size=100,
                  generations=100,
                  random_state=None,
                  **options):
    """Finds the attribute that best extends a rule prefix.

    Runs an evolution where the prefix attributes are fixed and every
    candidate carries at most one extra attribute drawn from the search
    attributes.  Without a parent front, the attribute appearing most often
    on the resulting Pareto front wins.  With a parent front, the attribute
    whose front members lie furthest above the parent front on average wins.
    Ties go to the attribute seen first.

    Parameters
    ----------
    config : SearchConfig
        the session-level configuration
    prefix : list
        the attribute indices, or (index, interval) pairs, of the prefix
    search : list of int
        the attributes eligible for the extension
    parent_front : list of RuleCandidates, optional
        the front of the prefix, also used to seed the evolution
    population_size : int
    generations : int
    random_state : None, int, or numpy.random.Generator
    options : dict
        further keyword arguments for :class:`EvolutionEngine`

    Returns
    -------
    the index of the best attribute, or None if no attribute qualifies
    """
    logger = logging.getLogger(__name__)

    if not search:
        raise QarmError("search attributes must not be empty")

    fixed = _prefix_indices(prefix)
    run_config = config.derive(fixed=fixed, search=search, strategy="pool")

    engine = EvolutionEngine(run_config,
                             population_size=population_size,
                             generations=generations,
                             random_state=random_state,
                             **options)
    front = pareto_front(engine.run(seed_front=parent_front))
    groups = group_by_attribute(front, set(fixed))

    if not groups:
        logger.info("no non-fixed attributes found in the Pareto front")
        return None

    names = config.dataset.names

    if not parent_front:
        ranked = [(index, len(members)) for index, members in groups.items()]
        ranked.sort(key=lambda entry: entry[1], reverse=True)

        for index, count in ranked:
            logger.info("%-20s -> %d" % (names[index], count))
    else:
        ranked = [(index, average_vertical_distance(members, parent_front))
                  for index, members in groups.items() if members]
        ranked.sort(key=lambda entry: entry[1], reverse=True)

        for index, distance in ranked:
            logger.info("%-20s -> avg distance %.4f" % (names[index], distance))

    if not ranked:
        return None

    return ranked[0][0]

def top_range(config,
              attributes,
              parent_front=None,
              population_size=200,
              generations=500,
              random_state=None,
              decimals=4,
              **options):
    """Finds the best intervals for a fixed set of attributes.

    Runs an evolution in which exactly the given attributes are restricted,
    keeps the front members restricting all of them and nothing else, and
    selects the member whose false positive and false negative rates are the
    most balanced (see :func:`balance_score`).

    Parameters
    ----------
    config : SearchConfig
        the session-level configuration
    attributes : list
        attribute indices, or (index, interval) pairs; intervals are not used
        to initialize the evolution
    parent_front : list of RuleCandidates, optional
        the front used to seed the evolution
    population_size : int
    generations : int
    random_state : None, int, or numpy.random.Generator
    decimals : int (default: 4)
        rounding of the reported ranges
    options : dict
        further keyword arguments for :class:`EvolutionEngine`

    Returns
    -------
    a TopRangeResult with the rounded ranges, the exact intervals, the whole
    front, the selected candidate and its score; ranges and intervals are
    empty and candidate is None if no front member matches
    """
    logger = logging.getLogger(__name__)

    indices = _prefix_indices(attributes)

    if not indices:
        raise QarmError("attributes must not be empty")

    requested = frozenset(indices)
    run_config = config.derive(fixed=indices, search=(), strategy="pool")

    engine = EvolutionEngine(run_config,
                             population_size=population_size,
                             generations=generations,
                             random_state=random_state,
                             **options)
    front = pareto_front(engine.run(seed_front=parent_front))

    best = None
    best_score = float("inf")

    for candidate in front:
        if candidate.active_attributes() != requested:
            continue

        counts = confusion_counts(candidate.genes, config)
        score = balance_score(*error_rates(*counts))

        if best is None or score < best_score:
            best = candidate
            best_score = score

    logger.info("Pareto front has %d solutions" % len(front))

    if best is None:
        logger.info("no solution matched the requested attributes")
        return TopRangeResult(OrderedDict(), OrderedDict(), front, None,
                              float("inf"))

    exact = best.intervals()
    intervals = OrderedDict((i, exact[i]) for i in indices)
    ranges = OrderedDict((i, (round(lo, decimals), round(hi, decimals)))
                         for i, (lo, hi) in intervals.items())

    for index, (lo, hi) in ranges.items():
        logger.info("%s percentiles: %d..%d, bounds: %g..%g" % (
                config.dataset.names[index],
                config.percentiles.cumulative_percentage(index, lo),
                config.percentiles.cumulative_percentage(index, hi),
                lo, hi))

    return TopRangeResult(ranges, intervals, front, best, best_score)
