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
from scipy.stats import binom

def active_arrays(genes):
    """Extracts the active genes into parallel (indices, lowers, uppers) arrays.

    Accepts genes or (index, (lower, upper)) pairs.
    """
    idxs, lows, ups = [], [], []

    for gene in genes:
        if hasattr(gene, "is_default"):
            if gene.is_default:
                continue

            index, lower, upper = gene.index, gene.lower, gene.upper
        else:
            index, (lower, upper) = gene

        idxs.append(index)
        lows.append(lower)
        ups.append(upper)

    return (np.asarray(idxs, dtype=int),
            np.asarray(lows, dtype=float),
            np.asarray(ups, dtype=float))

def matching_rows(x, idxs, lows, ups):
    """Returns the indices of the rows satisfying every interval.

    Rows failing a bound are not tested against the remaining bounds.  NaN
    cells always fail their bound test.
    """
    rows = np.arange(x.shape[0])

    for j in range(idxs.shape[0]):
        values = x[rows, idxs[j]]
        rows = rows[(values >= lows[j]) & (values <= ups[j])]

        if rows.shape[0] == 0:
            break

    return rows

def evaluate(candidate, config):
    """Computes the (support, confidence) fitness of a candidate.

    Support is the number of rows matching the antecedent, confidence is the
    fraction of those rows that also fall into the target interval (0 if no
    row matches).

    Parameters
    ----------
    candidate : RuleCandidate
    config : SearchConfig

    Returns
    -------
    the fitness tuple (support, confidence)
    """
    rows = matching_rows(config.x, *active_arrays(candidate.genes))
    support_x = rows.shape[0]

    if support_x == 0:
        return (0.0, 0.0)

    support_xy = np.count_nonzero(config.target_mask[rows])
    return (float(support_x), support_xy / support_x)

def support_only(candidate, config):
    """Counts the rows matching the antecedent, skipping the consequent."""
    idxs, lows, ups = active_arrays(candidate.genes)

    if idxs.shape[0] == 0:
        return config.x.shape[0]

    return matching_rows(config.x, idxs, lows, ups).shape[0]

def confusion_counts(intervals, config):
    """Computes the 2x2 antecedent/target confusion counts.

    Parameters
    ----------
    intervals : list of genes or (index, (lower, upper)) pairs
    config : SearchConfig

    Returns
    -------
    tuple (tp, fp, fn, tn)
    """
    rows = matching_rows(config.x, *active_arrays(intervals))
    n = config.x.shape[0]
    support_x = rows.shape[0]
    support_y = config.support_y

    tp = int(np.count_nonzero(config.target_mask[rows]))
    fp = support_x - tp
    fn = support_y - tp
    tn = n - support_x - fn
    return tp, fp, fn, tn

def error_rates(tp, fp, fn, tn):
    """Returns the (false positive rate, false negative rate), 0 for 0/0."""
    type1 = fp / (fp + tn) if fp + tn > 0 else 0.0
    type2 = fn / (fn + tp) if fn + tp > 0 else 0.0
    return type1, type2

def balance_score(type1, type2):
    """Distance of the two error rates from a balanced trade-off.

    The score is 0 when both rates are 0, infinite when exactly one of them
    is 0, and ``|max/min - 1|`` otherwise.  Smaller is better.
    """
    if type1 == 0 and type2 == 0:
        return 0.0
    elif type1 == 0 or type2 == 0:
        return float("inf")
    else:
        return abs(max(type1, type2) / min(type1, type2) - 1.0)

def rule_stats(intervals, config):
    """Computes the statistics of a rule.

    Parameters
    ----------
    intervals : list of genes or (index, (lower, upper)) pairs
    config : SearchConfig

    Returns
    -------
    dict with support, confidence, lift, coverage and the error rates
    """
    tp, fp, fn, tn = confusion_counts(intervals, config)
    n = tp + fp + fn + tn
    support_x = tp + fp
    support_y = tp + fn

    confidence = tp / support_x if support_x > 0 else 0.0
    base_rate = support_y / n if n > 0 else 0.0
    lift = confidence / base_rate if base_rate > 0 else 0.0
    coverage = tp / support_y if support_y > 0 else 0.0
    type1, type2 = error_rates(tp, fp, fn, tn)

    return {"support" : support_x,
            "confidence" : confidence,
            "lift" : lift,
            "coverage" : coverage,
            "fpr" : type1,
            "fnr" : type2}

def quasi_p(intervals, config):
    """Calculates quasi-p values for each restricted attribute of a rule.

    For every attribute, the restriction is dropped and a one sided binomial
    test checks whether the rule's hits could have been drawn from the
    relaxed rule's hit rate (Bryant and Lempert, 2010).

    Parameters
    ----------
    intervals : list of (index, (lower, upper)) pairs
    config : SearchConfig

    Returns
    -------
    dict mapping each attribute index to its quasi-p value
    """
    intervals = list(intervals)
    tp, fp, _, _ = confusion_counts(intervals, config)
    t_rule = tp + fp
    h_rule = tp

    qp_values = {}

    for i, (index, _) in enumerate(intervals):
        relaxed = intervals[:i] + intervals[i+1:]
        tp_j, fp_j, _, _ = confusion_counts(relaxed, config)
        t_j = tp_j + fp_j

        if t_j == 0:
            qp_values[index] = 1.0
            continue

        p = tp_j / t_j
        qp_values[index] = float(binom.sf(h_rule-1, t_rule, p))

    return qp_values
