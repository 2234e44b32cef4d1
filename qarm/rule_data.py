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

import math
import logging
from collections import namedtuple
import numpy as np
import pandas as pd
from .exceptions import QarmError

class PercentileIndex(object):
    """Percentile lookups over the ascending-sorted columns of a dataset.

    NaN values are removed before sorting, so every lookup only sees the
    observed values of a column.
    """

    def __init__(self, sorted_columns):
        self.sorted_columns = sorted_columns

    def value(self, index, quantile):
        """Returns the value at the given quantile of a column.

        Uses linear interpolation between the two nearest ranks, i.e., the
        position of the quantile is ``quantile * (n-1)``.

        Parameters
        ----------
        index : int
            the column index
        quantile : float
            the desired quantile, clamped to [0, 1]

        Returns
        -------
        the interpolated value
        """
        if index < 0 or index >= len(self.sorted_columns):
            raise QarmError("attribute index out of range: %d" % index)

        col = self.sorted_columns[index]
        n = col.shape[0]

        if n == 0:
            raise QarmError("empty column at index %d" % index)

        q = min(max(quantile, 0.0), 1.0)

        if q <= 0.0:
            return col[0]
        if q >= 1.0:
            return col[n-1]

        pos = q * (n-1)
        lower = int(math.floor(pos))
        weight = pos - lower

        if weight == 0 or lower+1 >= n:
            return col[lower]

        return col[lower] + (col[lower+1] - col[lower]) * weight

    def cumulative_percentage(self, index, value):
        """Returns the percentage of observations less than or equal to value."""
        col = self.sorted_columns[index]
        count = np.searchsorted(col, value, side="right")
        return 100.0 * count / col.shape[0]

class Dataset(object):
    """Read-only numeric matrix used by the rule search.

    Stores the raw values (NaN allowed), the column names, a sorted copy of
    every column without NaNs, the [min, max] bounds of every column and a
    :class:`PercentileIndex`.
    """

    def __init__(self, x, names=None, include=None, exclude=None):
        """Creates a new dataset.

        Parameters
        ----------
        x : a matrix-like object (pandas.DataFrame, numpy.recarray, 2-d
            ndarray, or list of rows)
            the observations
        names : list of str, optional
            the column names when x does not carry them
        include : list of str, optional
            the names of the columns kept in the dataset
        exclude : list of str, optional
            the names of the columns dropped from the dataset
        """
        logger = logging.getLogger(__name__)

        if isinstance(x, pd.DataFrame):
            df = x.copy()
        elif isinstance(x, np.ndarray) and x.dtype.names is not None:
            df = pd.DataFrame.from_records(x)
        else:
            if not isinstance(x, np.ndarray):
                widths = set(len(row) for row in x)

                if len(widths) > 1:
                    raise QarmError("inconsistent row lengths in dataset")

            values = np.asarray(x, dtype=float)

            if values.ndim != 2:
                raise QarmError("x is not a 2-d matrix")

            df = pd.DataFrame(values, columns=names)

        if df.shape[0] == 0 or df.shape[1] == 0:
            raise QarmError("dataset is empty")

        df.columns = [str(c) for c in df.columns]

        if include and isinstance(include, str):
            include = [include]

        if exclude and isinstance(exclude, str):
            exclude = [exclude]

        if include:
            df = df[[c for c in df.columns if c in set(include)]]

        if exclude:
            df = df.drop(columns=[c for c in df.columns if c in set(exclude)])

        # only numeric columns take part in the search
        numeric = [c for c in df.columns
                   if pd.api.types.is_numeric_dtype(df[c])]
        dropped = [c for c in df.columns if c not in numeric]

        if dropped:
            logger.warning("ignoring non-numeric columns: %s" % ", ".join(dropped))

        df = df[numeric]

        if df.shape[1] == 0:
            raise QarmError("no numeric columns left in dataset")

        self.names = list(df.columns)
        self.x = np.asfortranarray(df.to_numpy(dtype=float))
        self.n, self.m = self.x.shape

        self.sorted_columns = []

        for j in range(self.m):
            col = self.x[:, j]
            col = np.sort(col[~np.isnan(col)])

            if col.shape[0] == 0:
                raise QarmError("column %s contains no values" % self.names[j])

            self.sorted_columns.append(col)

        self.bounds = np.array([[col[0], col[-1]] for col in self.sorted_columns])
        self.percentiles = PercentileIndex(self.sorted_columns)

        logger.info("dataset with %d rows and %d columns" % (self.n, self.m))

    def index_of(self, name):
        """Returns the column index for a column name."""
        if name not in self.names:
            raise QarmError("column '%s' not found" % name)

        return self.names.index(name)

    def is_constant(self, index):
        return self.bounds[index][0] == self.bounds[index][1]

def resolve_target(dataset, target, interval=None, percentiles=None):
    """Resolves the accepted interval of the target attribute.

    Parameters
    ----------
    dataset : Dataset
    target : str or int
        the name or the index of the target column
    interval : tuple, optional
        literal (lower, upper) bounds, where None stands for the column
        minimum or maximum
    percentiles : tuple, optional
        (lower, upper) percentiles in [0, 1]; used when no interval is
        given and defaults to (0.9, 1.0)

    Returns
    -------
    tuple with the target index and the (lower, upper) interval
    """
    if isinstance(target, str):
        index = dataset.index_of(target)
    else:
        index = int(target)

        if index < 0 or index >= dataset.m:
            raise QarmError("target index %d out of range" % index)

    col_min, col_max = dataset.bounds[index]

    if interval is not None:
        lower, upper = interval
        lower = col_min if lower is None else float(lower)
        upper = col_max if upper is None else float(upper)

        if lower > upper:
            raise QarmError("target interval lower bound must be <= upper")
    else:
        if percentiles is None:
            percentiles = (0.9, 1.0)

        p_lower, p_upper = percentiles

        if not (0 <= p_lower <= 1 and 0 <= p_upper <= 1):
            raise QarmError("target percentiles must be in [0, 1]")

        if p_lower > p_upper:
            raise QarmError("target percentile lower bound must be <= upper")

        lower = dataset.percentiles.value(index, p_lower)
        upper = dataset.percentiles.value(index, p_upper)

    return index, (lower, upper)

STRATEGIES = ("pool", "full")

_SearchConfigBase = namedtuple("_SearchConfigBase",
        ["dataset", "target", "target_interval", "target_mask", "fixed",
         "search", "strategy", "min_support", "max_support"])

class SearchConfig(_SearchConfigBase):
    """Immutable description of one evolutionary run.

    A session-level config is built once with :meth:`create`; every run
    derives its own copy with the attributes it fixes and searches.
    """

    __slots__ = ()

    @classmethod
    def create(cls, dataset, target, target_interval, min_support=1,
               max_support=None, fixed=(), search=(), strategy="pool"):
        if max_support is None:
            max_support = dataset.n

        if min_support > max_support:
            raise QarmError("min_support must be <= max_support")

        lower, upper = target_interval

        if lower > upper:
            raise QarmError("target interval lower bound must be <= upper")

        y = dataset.x[:, target]
        mask = (y >= lower) & (y <= upper)

        config = cls(dataset, target, (lower, upper), mask, (), (), "pool",
                     min_support, max_support)
        return config.derive(fixed=fixed, search=search, strategy=strategy)

    def derive(self, fixed=None, search=None, strategy=None):
        """Returns a copy of this config with new run settings."""
        changes = {}

        if fixed is not None:
            changes["fixed"] = tuple(fixed)

        if search is not None:
            changes["search"] = tuple(search)

        if strategy is not None:
            if strategy not in STRATEGIES:
                raise QarmError("unknown strategy %s" % strategy)

            changes["strategy"] = strategy

        return self._replace(**changes)

    @property
    def bounds(self):
        return self.dataset.bounds

    @property
    def percentiles(self):
        return self.dataset.percentiles

    @property
    def x(self):
        return self.dataset.x

    @property
    def fixed_set(self):
        return frozenset(self.fixed)

    @property
    def support_y(self):
        return int(np.count_nonzero(self.target_mask))
