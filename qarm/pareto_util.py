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

# gaps below this are treated as zero when averaging vertical distances
EPS = 1e-12

def fitness_matrix(population):
    """Stacks the (support, confidence) fitness of a population."""
    if len(population) == 0:
        return np.zeros((0, 2))

    return np.array([c.fitness for c in population], dtype=float)

def dominance_matrix(f):
    """Returns a boolean matrix where entry [i, j] is True if i dominates j.

    Both objectives are maximized: i dominates j if it is not worse in any
    objective and strictly better in at least one.
    """
    ge = np.all(f[:, None, :] >= f[None, :, :], axis=2)
    gt = np.any(f[:, None, :] > f[None, :, :], axis=2)
    return ge & gt

def pareto_front(population):
    """Extracts the non-dominated candidates of a population.

    Every candidate whose fitness equals a non-dominated fitness vector is
    kept, so the front may hold several candidates with the same objectives.

    Parameters
    ----------
    population : list of evaluated RuleCandidates

    Returns
    -------
    list of the candidates on the Pareto front, in population order
    """
    population = list(population)

    if not population:
        return []

    dominated = np.any(dominance_matrix(fitness_matrix(population)), axis=0)
    return [c for c, d in zip(population, dominated) if not d]

def _curve(points):
    """Collapses (x, y) points into an ascending curve.

    Points sharing an x value collapse to the largest y of that vertical run.
    """
    if len(points) == 0:
        return np.zeros(0), np.zeros(0)

    points = np.asarray(points, dtype=float)
    xs = np.unique(points[:, 0])
    ys = np.array([points[points[:, 0] == x, 1].max() for x in xs])
    return xs, ys

def _trapezoid(xs, ys):
    if xs.shape[0] < 2:
        return 0.0

    return float(np.sum(np.diff(xs) * (ys[:-1] + ys[1:]) * 0.5))

def curve_value(xs, ys, x):
    """Evaluates a piecewise-linear curve, extended flat beyond its ends."""
    return np.interp(x, xs, ys)

def _normalized_points(front, min_support, max_support):
    span = max_support - min_support

    if span <= 0:
        span = 1.0

    f = fitness_matrix(front)

    if f.shape[0] == 0:
        return f

    inside = (f[:, 0] >= min_support) & (f[:, 0] <= max_support)
    f = f[inside]
    f[:, 0] = (f[:, 0] - min_support) / span
    return f

def front_distance(parent, child, min_support, max_support):
    """Signed area between the child's and the parent's front curves.

    Each front becomes a piecewise-linear curve of confidence over support,
    where support is normalized to [0, 1] over [min_support, max_support] and
    points outside that range are dropped.  A front with fewer than two
    points has no curve.  Without a parent curve, the area under the child
    curve is returned.  Otherwise the area difference is integrated over the
    window where both curves are defined.

    Parameters
    ----------
    parent : list of RuleCandidates or None
        the parent front
    child : list of RuleCandidates
        the child front
    min_support : float
    max_support : float

    Returns
    -------
    the area improvement of the child front over the parent front
    """
    p_pts = _normalized_points(parent or [], min_support, max_support)
    c_pts = _normalized_points(child or [], min_support, max_support)

    if c_pts.shape[0] < 2:
        return 0.0

    cx, cy = _curve(c_pts)

    if p_pts.shape[0] < 2:
        return _trapezoid(cx, cy)

    px, py = _curve(p_pts)

    x_left = max(px[0], cx[0])
    x_right = min(px[-1], cx[-1])

    if x_left >= x_right:
        return 0.0

    xs = np.concatenate(([x_left, x_right], px, cx))
    xs = np.unique(xs[(xs >= x_left) & (xs <= x_right)])

    child_area = _trapezoid(xs, curve_value(cx, cy, xs))
    parent_area = _trapezoid(xs, curve_value(px, py, xs))
    return child_area - parent_area

def average_vertical_distance(group, reference):
    """Average height of the group's candidates above the reference front.

    For each candidate, the reference curve is evaluated at the candidate's
    support and subtracted from its confidence.  Only strictly positive gaps
    are averaged.

    Parameters
    ----------
    group : list of RuleCandidates
    reference : list of RuleCandidates

    Returns
    -------
    the average positive gap, or 0 if there is none
    """
    if not group or not reference:
        return 0.0

    xs, ys = _curve(fitness_matrix(reference))
    f = fitness_matrix(group)

    gaps = f[:, 1] - curve_value(xs, ys, f[:, 0])
    gaps = gaps[gaps > EPS]

    if gaps.shape[0] == 0:
        return 0.0

    return float(np.mean(gaps))
