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
import numpy as np
from .exceptions import QarmError
from .rule_gene import CandidateFactory
from .rule_objfcn import evaluate
from .rule_ops import gaussian_mutate, SupportConstraint, nsga2_select

class EvolutionEngine(object):
    """Generational two-objective evolution of rule candidates.

    Every generation selects survivors and offspring from the current
    population by NSGA-II crowded comparison on (support, confidence),
    mutates the offspring, repairs candidates violating the support
    constraint and evaluates the new population.  The engine runs for exactly
    the given number of generations and returns the whole final population;
    extracting the Pareto front is left to the caller.
    """

    def __init__(self,
                 config,
                 population_size=100,
                 generations=100,
                 p_mutation=1.0,
                 std_mutation=0.15,
                 offspring_fraction=0.75,
                 max_repairs=10,
                 immigrant_fraction=0.0,
                 random_state=None):
        """Creates a new evolution engine.

        Parameters
        ----------
        config : SearchConfig
            the run configuration (fixed and search attributes, strategy)
        population_size : int
            the number of candidates in each generation
        generations : int
            the number of generations to run
        p_mutation : float (default: 1.0)
            the probability of mutating an eligible gene
        std_mutation : float (default: 0.15)
            the standard deviation of the mutation noise, relative to the
            attribute range
        offspring_fraction : float (default: 0.75)
            the fraction of each generation produced as offspring
        max_repairs : int (default: 10)
            the number of fresh candidates tried when repairing
        immigrant_fraction : float (default: 0.0)
            the fraction of survivors replaced by fresh random candidates
        random_state : None, int, or numpy.random.Generator
            the random generator shared by sampling and mutation
        """
        if population_size <= 0:
            raise QarmError("population size must be positive")

        if generations < 0:
            raise QarmError("generation count must not be negative")

        if not 0 <= offspring_fraction <= 1:
            raise QarmError("offspring fraction must be in [0, 1]")

        self.config = config
        self.population_size = population_size
        self.generations = generations
        self.p_mutation = p_mutation
        self.std_mutation = std_mutation
        self.offspring_fraction = offspring_fraction
        self.immigrant_fraction = immigrant_fraction
        self.rng = np.random.default_rng(random_state)
        self.factory = CandidateFactory(config, self.rng)
        self.constraint = SupportConstraint(config, self.factory,
                                            max_attempts=max_repairs)

    def evaluate(self, candidate):
        if not candidate.is_evaluated:
            candidate.fitness = evaluate(candidate, self.config)
        return candidate

    def initial_population(self, seed_front=None):
        """Creates the first generation, optionally seeded from a front.

        Up to population_size candidates of the seed front are taken with
        their intervals unchanged; the rest is sampled fresh.
        """
        population = []

        if seed_front:
            population = [c.rebind(self.config)
                          for c in list(seed_front)[:self.population_size]]

        while len(population) < self.population_size:
            population.append(self.factory.new_candidate())

        return [self.evaluate(c) for c in population]

    def evolve(self, population):
        """Produces the next generation from the given one."""
        n_offspring = int(round(self.offspring_fraction * self.population_size))
        n_survivors = self.population_size - n_offspring

        survivors = nsga2_select(population, n_survivors)
        offspring = nsga2_select(population, n_offspring)

        offspring = [gaussian_mutate(c, self.rng, self.p_mutation,
                                     self.std_mutation) for c in offspring]

        n_immigrants = min(int(self.immigrant_fraction * n_survivors),
                           n_survivors)

        if n_immigrants > 0:
            survivors = survivors[:n_survivors-n_immigrants] + \
                        [self.factory.new_candidate()
                         for _ in range(n_immigrants)]

        population = [self.constraint(c) for c in survivors + offspring]
        return [self.evaluate(c) for c in population]

    def run(self, seed_front=None):
        """Runs the evolution and returns the final population.

        Parameters
        ----------
        seed_front : list of RuleCandidates, optional
            candidates copied into the first generation

        Returns
        -------
        list of evaluated RuleCandidates
        """
        logger = logging.getLogger(__name__)

        population = self.initial_population(seed_front)

        for generation in range(1, self.generations+1):
            population = self.evolve(population)

            if logger.isEnabledFor(logging.DEBUG):
                best = max(c.fitness[1] for c in population)
                logger.debug("generation %d: best confidence %f" %
                             (generation, best))

        return population
