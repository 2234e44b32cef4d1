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

import unittest
from collections import OrderedDict
import mock
import numpy as np
import pandas as pd
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from qarm import QarmError, Dataset, SearchConfig, resolve_target, \
        TreeSearch, SearchSession, RuleTreeNode
from qarm.rule_gene import RuleCandidate
from qarm.rule_objfcn import rule_stats, confusion_counts, error_rates, \
        balance_score
from qarm.rule_search import TopRangeResult, top_attribute, top_range
from qarm.plotting_util import format_number, rule_string, plot_fronts

def make_front(points):
    return [RuleCandidate([], fitness=(float(s), float(c))) for s, c in points]

def fake_attribute(config, prefix, search, **kwargs):
    return search[0]

def fake_range(config, attributes, **kwargs):
    intervals = OrderedDict((i, tuple(config.bounds[i])) for i in attributes)
    front = make_front([(1, 0.5), (config.dataset.n, 0.5)])
    return TopRangeResult(intervals, intervals, front, front[0], 0.0)

class TestRuleSearch(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        rng = np.random.default_rng(11)
        cls.df = pd.DataFrame(rng.random((100, 3)), columns=["A", "B", "Y"])
        cls.dataset = Dataset(cls.df)
        index, interval = resolve_target(cls.dataset, "Y")
        cls.config = SearchConfig.create(cls.dataset, index, interval)

    def test_top_range(self):
        config = TestRuleSearch.config
        result = top_range(config, [0], population_size=30, generations=20,
                           random_state=0)

        self.assertTrue(result.candidate is not None)
        self.assertEqual(list(result.intervals.keys()), [0])
        self.assertEqual(list(result.ranges.keys()), [0])

        stats = rule_stats(list(result.intervals.items()), config)

        self.assertEqual(stats["support"], result.candidate.fitness[0])
        self.assertAlmostEqual(stats["confidence"], result.candidate.fitness[1])

        counts = confusion_counts(list(result.intervals.items()), config)
        self.assertEqual(result.score, balance_score(*error_rates(*counts)))

        lo, hi = result.intervals[0]
        self.assertAlmostEqual(result.ranges[0][0], lo, places=4)
        self.assertAlmostEqual(result.ranges[0][1], hi, places=4)

    def test_top_range_prefix_pairs(self):
        config = TestRuleSearch.config
        result = top_range(config, [(1, (0.2, 0.4)), 0], population_size=20,
                           generations=5, random_state=0)

        self.assertEqual(list(result.intervals.keys()), [1, 0])
        self.assertEqual(result.candidate.active_attributes(),
                         frozenset([0, 1]))

    def test_top_attribute(self):
        config = TestRuleSearch.config
        attribute = top_attribute(config, [], [0, 1], population_size=20,
                                  generations=10, random_state=0)

        self.assertTrue(attribute in (0, 1))

    def test_top_attribute_with_parent(self):
        config = TestRuleSearch.config
        parent = top_range(config, [0], population_size=20, generations=5,
                           random_state=0)
        attribute = top_attribute(config, [0], [1],
                                  parent_front=parent.front,
                                  population_size=20,
                                  generations=5,
                                  random_state=0)

        self.assertTrue(attribute in (1, None))

    def test_errors(self):
        config = TestRuleSearch.config

        self.assertRaises(QarmError, top_attribute, config, [], [])
        self.assertRaises(QarmError, top_range, config, [])

class TestRuleTreeNode(unittest.TestCase):

    def setUp(self):
        df = pd.DataFrame({"A" : np.arange(10.0),
                           "B" : np.arange(10.0)[::-1],
                           "Y" : np.arange(10.0)})
        dataset = Dataset(df)
        self.config = SearchConfig.create(dataset, 2, (5, 9))

    def tearDown(self):
        plt.close("all")

    def test_tree(self):
        front = make_front([(1, 0.5), (10, 0.5)])
        root = RuleTreeNode(self.config)
        child = root.add_child(0, OrderedDict([(0, (5.0, 9.0))]), front,
                               None, 0.3)
        grandchild = child.add_child(1, OrderedDict([(0, (5.0, 9.0)),
                                                     (1, (0.0, 4.0))]),
                                     front, None, -0.1)

        self.assertTrue(root.is_root)
        self.assertEqual(root.name, "START")
        self.assertEqual(root.depth, 0)
        self.assertEqual(len(root), 1)
        self.assertEqual(list(root), [root, child, grandchild])

        self.assertEqual(child.name, "A")
        self.assertEqual(child.interval, (5.0, 9.0))
        self.assertEqual(grandchild.depth, 2)
        self.assertEqual(grandchild.path, [0, 1])
        self.assertAlmostEqual(child.cumulative, 0.3)
        self.assertAlmostEqual(grandchild.cumulative, 0.3)

        self.assertEqual(child.support, 5)
        self.assertEqual(child.confidence, 1.0)
        self.assertEqual(child.coverage, 1.0)
        self.assertAlmostEqual(child.lift, 2.0)

    def test_str(self):
        root = RuleTreeNode(self.config)
        child = root.add_child(0, OrderedDict([(0, (5.0, 9.0))]), [], None,
                               0.3)

        self.assertTrue(str(root).startswith("Root [1 children]"))
        self.assertTrue(str(child).startswith("Node A [Depth 1]"))
        self.assertTrue("A in [60, 100]%" in str(child))

    def test_limits(self):
        root = RuleTreeNode(self.config)
        child = root.add_child(0, OrderedDict([(0, (5.0, 9.0))]), [], None,
                               0.3)
        limits = child.limits

        self.assertEqual(list(limits.columns), ["min", "max", "qp values"])
        self.assertEqual(list(limits.index), ["A"])
        self.assertEqual(limits.loc["A", "min"], 5.0)
        self.assertTrue(0 <= limits.loc["A", "qp values"] <= 1)

    def test_read_only(self):
        child = RuleTreeNode(self.config).add_child(
                0, OrderedDict([(0, (5.0, 9.0))]), [], None, 0.3)

        with self.assertRaises(AttributeError):
            child.support = 3

    def test_show_front(self):
        root = RuleTreeNode(self.config)
        root.front = make_front([(1, 0.2), (10, 0.2)])
        child = root.add_child(0, OrderedDict([(0, (5.0, 9.0))]),
                               make_front([(1, 0.5), (10, 0.5)]), None, 0.3)

        fig = child.show_front()
        self.assertEqual(len(fig.axes[0].get_lines()), 2)

class TestTreeSearch(unittest.TestCase):

    small = {"pop_size_attr_first" : 10,
             "max_gen_attr_first" : 3,
             "pop_size_attr_parent" : 10,
             "max_gen_attr_parent" : 3,
             "pop_size_range" : 10,
             "max_gen_range" : 3,
             "random_state" : 0}

    @classmethod
    def setUpClass(cls):
        rng = np.random.default_rng(4)
        cls.df = pd.DataFrame(rng.random((60, 4)),
                              columns=["A", "B", "C", "Y"])

    def test_threshold(self):
        search = TreeSearch(TestTreeSearch.df, "Y",
                            improvement_threshold=1e9,
                            **TestTreeSearch.small)
        root = search.find_tree()

        self.assertEqual(len(root), 0)
        self.assertEqual(max(node.depth for node in root), 0)
        self.assertEqual(search.rules, [])
        self.assertEqual(search.nodes(), [])
        self.assertEqual(len(search.stats), 0)

    def test_max_depth(self):
        search = TreeSearch(TestTreeSearch.df, "Y",
                            max_depth=1,
                            improvement_threshold=0.0,
                            **TestTreeSearch.small)
        search.find_tree()

        for node in search.nodes():
            self.assertEqual(node.depth, 1)
            self.assertEqual(len(node.rule), 1)

        for rule in search.rules:
            self.assertEqual(len(rule), 1)

    @mock.patch("qarm.rule_alg.top_range", side_effect=fake_range)
    @mock.patch("qarm.rule_alg.top_attribute", side_effect=fake_attribute)
    def test_max_depth_paths(self, attribute_mock, range_mock):
        search = TreeSearch(TestTreeSearch.df, "Y",
                            max_depth=1,
                            max_first_children=2)
        root = search.find_tree()

        self.assertEqual(len(root), 2)
        self.assertEqual([[entry[0] for entry in rule] for rule in search.rules],
                         [["A"], ["B"]])

        # committed siblings are not proposed again
        self.assertEqual(attribute_mock.call_args_list[0][0][2], [0, 1, 2])
        self.assertEqual(attribute_mock.call_args_list[1][0][2], [1, 2])

        stats = search.stats
        self.assertEqual(list(stats.index), ["Node 1", "Node 2"])
        self.assertEqual(list(stats["support"]), [60, 60])
        self.assertEqual(list(stats["depth"]), [1, 1])

        limits = search.limits
        self.assertEqual(limits.shape, (2, 4))
        self.assertEqual(limits.loc["A", ("node 1", "min")],
                         search.dataset.bounds[0][0])
        self.assertTrue(np.isnan(limits.loc["A", ("node 2", "min")]))

    @mock.patch("qarm.rule_alg.front_distance", return_value=1.0)
    @mock.patch("qarm.rule_alg.top_range", side_effect=fake_range)
    @mock.patch("qarm.rule_alg.top_attribute", side_effect=fake_attribute)
    def test_traversal(self, attribute_mock, range_mock, distance_mock):
        search = TreeSearch(TestTreeSearch.df, "Y",
                            max_depth=2,
                            max_children=1,
                            max_first_children=2)
        root = search.find_tree()

        self.assertEqual([[entry[0] for entry in rule] for rule in search.rules],
                         [["A"], ["A", "B"], ["B"], ["B", "A"]])
        self.assertEqual(max(node.depth for node in root), 2)
        self.assertAlmostEqual(root.children[0].children[0].cumulative, 2.0)

        # the path state is restored once the traversal returns
        self.assertEqual(search.session.used, set())
        self.assertEqual(search.session.fronts, [])

        # deeper proposals are seeded from the parent front
        self.assertTrue(range_mock.call_args_list[0][1]["parent_front"] is None)
        self.assertTrue(range_mock.call_args_list[1][1]["parent_front"]
                        is root.children[0].front)

    @mock.patch("qarm.rule_alg.top_range", side_effect=fake_range)
    @mock.patch("qarm.rule_alg.top_attribute", side_effect=fake_attribute)
    def test_rejected(self, attribute_mock, range_mock):
        search = TreeSearch(TestTreeSearch.df, "Y",
                            max_depth=2,
                            max_first_children=1)
        root = search.find_tree()

        # the second front equals the first, so its improvement is zero
        self.assertEqual(len(root), 1)
        self.assertEqual(len(root.children[0]), 0)
        self.assertEqual(range_mock.call_count, 2)

    @mock.patch("qarm.rule_alg.top_attribute", side_effect=fake_attribute)
    def test_root_threshold(self, attribute_mock):
        def flat_range(config, attributes, **kwargs):
            result = fake_range(config, attributes, **kwargs)
            front = make_front([(1, 0.05), (config.dataset.n, 0.05)])
            return result._replace(front=front, candidate=front[0])

        with mock.patch("qarm.rule_alg.top_range", side_effect=flat_range):
            search = TreeSearch(TestTreeSearch.df, "Y", max_depth=1)
            self.assertEqual(len(search.find_tree()), 0)

            search = TreeSearch(TestTreeSearch.df, "Y", max_depth=1,
                                max_first_children=2,
                                improvement_threshold=0.0)
            self.assertEqual(len(search.find_tree()), 2)

    @mock.patch("qarm.rule_alg.top_attribute", return_value=None)
    def test_no_attribute(self, attribute_mock):
        search = TreeSearch(TestTreeSearch.df, "Y")
        root = search.find_tree()

        self.assertEqual(len(root), 0)
        self.assertEqual(attribute_mock.call_count, 1)

    @mock.patch("qarm.rule_alg.front_distance", return_value=1.0)
    @mock.patch("qarm.rule_alg.top_attribute", side_effect=fake_attribute)
    def test_restored_on_error(self, attribute_mock, distance_mock):
        calls = []

        def failing_range(config, attributes, **kwargs):
            calls.append(attributes)

            if len(calls) > 1:
                raise QarmError("failed")

            return fake_range(config, attributes, **kwargs)

        search = TreeSearch(TestTreeSearch.df, "Y")

        with mock.patch("qarm.rule_alg.top_range", side_effect=failing_range):
            self.assertRaises(QarmError, search.find_tree)

        self.assertEqual(search.session.used, set())
        self.assertEqual(search.session.fronts, [])

    def test_constant_columns(self):
        df = TestTreeSearch.df.copy()
        df["K"] = 1.0
        search = TreeSearch(df, "Y")

        session = SearchSession(search.config)

        self.assertEqual(search.search_universe(session), [0, 1, 2])
        self.assertEqual(search.search_universe(session, exclude=[1]), [0, 2])

    def test_errors(self):
        df = TestTreeSearch.df

        self.assertRaises(QarmError, TreeSearch, df, "Z")
        self.assertRaises(QarmError, TreeSearch, df, "Y",
                          percentiles=(0.5, 2.0))
        self.assertRaises(QarmError, TreeSearch, df, "Y", interval=(1, 0))
        self.assertRaises(QarmError, TreeSearch, df, "Y", max_depth=-1)
        self.assertRaises(QarmError, TreeSearch, df, "Y", pop_size_range=0)
        self.assertRaises(QarmError, TreeSearch, df, "Y", min_support=100)

class TestPlottingUtil(unittest.TestCase):

    def tearDown(self):
        plt.close("all")

    def test_format_number(self):
        self.assertEqual(format_number(5), "5")
        self.assertEqual(format_number(np.int64(5)), "5")
        self.assertEqual(format_number(0.5), "0.500")
        self.assertEqual(format_number(5.5), "5.50")
        self.assertEqual(format_number(123.4), "123.4")
        self.assertEqual(format_number(12345.0), "1.2e+04")

    def test_rule_string(self):
        dataset = Dataset(pd.DataFrame({"A" : np.arange(10.0),
                                        "B" : np.arange(10.0)}))

        self.assertEqual(rule_string({0 : (0.0, 4.0)}, dataset),
                         "A in [10, 50]%")
        self.assertEqual(rule_string({0 : (0.0, 4.0)}, dataset,
                                     percentiles=False),
                         "A in [0.000, 4.00]")
        self.assertEqual(rule_string([(0, (0.0, 4.0)), (1, (5.0, 9.0))],
                                     dataset, separator="; "),
                         "A in [10, 50]%; B in [60, 100]%")

    def test_plot_fronts(self):
        fig = plot_fronts([("Parent", make_front([(1, 0.2), (5, 0.1)])),
                           ("Empty", []),
                           ("Child", make_front([(3, 0.6), (1, 0.9)]))],
                          title="fronts")
        ax = fig.axes[0]

        self.assertEqual(len(ax.get_lines()), 2)
        self.assertEqual(ax.get_title(), "fronts")
        self.assertEqual(list(ax.get_lines()[1].get_xdata()), [1, 3])
