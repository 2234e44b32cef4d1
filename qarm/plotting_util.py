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

import matplotlib.pyplot as plt
import numpy as np

def format_number(value):
    """Formats the bounds of a rule interval.

    Parameters
    ----------
    value : int or float
        the numeric limit

    Returns
    -------
    the formatted string representing the value
    """
    if isinstance(value, (int, np.integer)):
        fmt = "%d"
    elif -1 <= value <= 1:
        fmt = "%.3f"
    elif -10 <= value <= 10:
        fmt = "%.2f"
    elif -1000 <= value <= 1000:
        fmt = "%.1f"
    else:
        fmt = "%.2g"

    return fmt % value

def rule_string(rule, dataset, percentiles=True, separator=" AND "):
    """Renders a rule as text.

    Parameters
    ----------
    rule : dict or list of (index, (lower, upper)) pairs
        the intervals of the rule
    dataset : Dataset
        provides column names and percentiles
    percentiles : bool (default: True)
        show the bounds as cumulative percentages instead of values
    separator : str
        the text placed between attributes

    Returns
    -------
    the rule as a string
    """
    if isinstance(rule, dict):
        rule = list(rule.items())

    parts = []

    for index, (lower, upper) in rule:
        name = dataset.names[index]

        if percentiles:
            left = int(dataset.percentiles.cumulative_percentage(index, lower))
            right = int(dataset.percentiles.cumulative_percentage(index, upper))
            parts.append("%s in [%d, %d]%%" % (name, left, right))
        else:
            parts.append("%s in [%s, %s]" % (name, format_number(lower),
                                             format_number(upper)))

    return separator.join(parts)

def plot_fronts(series, title=None):
    """Plot Pareto fronts in the support/confidence plane.

    Parameters
    ----------
    series : list of (label, front) tuples
        the fronts to draw, each a list of evaluated RuleCandidates
    title : str, optional
        the title of the figure

    Returns
    -------
    the Matplotlib figure
    """
    fig = plt.figure()
    ax = fig.add_subplot(111)

    for label, front in series:
        if not front:
            continue

        f = np.array([c.fitness for c in front], dtype=float)
        f = f[np.argsort(f[:, 0], kind="stable")]

        lines = ax.plot(f[:, 0], f[:, 1], linewidth=1.5, label=label)
        ax.scatter(f[:, 0], f[:, 1], s=15, color=lines[0].get_color())

    ax.set_xlabel("Support")
    ax.set_ylabel("Confidence")
    ax.set_ylim(0, 1.05)
    ax.grid(True, which='both')

    if title:
        ax.set_title(title)

    if ax.get_legend_handles_labels()[0]:
        ax.legend(loc='best')

    return fig
