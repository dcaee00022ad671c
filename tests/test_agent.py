"""
Tests for the rule-based query interpreter.
"""
from data_explorer.agent import (
    SUGGESTED_PROMPTS,
    Interpretation,
    QueryInterpreter,
    RuleBasedInterpreter,
    find_column,
)
from data_explorer.dataset import Dataset
from data_explorer.views import numeric_value, render_cell


def _count(dataset, predicate):
    return sum(1 for row in dataset.rows if predicate(row))


class TestRules:
    """Each keyword rule against the sample stock table."""

    def setup_method(self):
        self.interpreter = RuleBasedInterpreter()

    def test_top_market_cap(self, stocks):
        result = self.interpreter.interpret("Show me the top 5 stocks by market cap", stocks)
        assert result.rows_affected == 5
        for position in range(1, 6):
            assert f"\n{position}. " in result.text
        assert "\n6. " not in result.text
        best = max(stocks.rows, key=lambda row: row["Market Cap"].value)
        assert f"1. {render_cell(best['Symbol'])} - ${render_cell(best['Market Cap'])}B" in result.text

    def test_positive_ytd(self, stocks):
        result = self.interpreter.interpret("Which stocks have positive YTD returns?", stocks)
        expected = _count(stocks, lambda row: row["YTD Return"].value > 0)
        assert result.rows_affected == expected
        assert f"Found {expected} stocks" in result.text

    def test_technology(self, stocks):
        result = self.interpreter.interpret("Compare technology sector stocks", stocks)
        expected = _count(stocks, lambda row: row["Sector"].value == "Technology")
        assert result.rows_affected == expected

    def test_high_pe(self, stocks):
        result = self.interpreter.interpret("Find stocks with high P/E ratios", stocks)
        expected = _count(stocks, lambda row: row["P/E Ratio"].value > 50)
        assert result.rows_affected == expected
        assert "above 50" in result.text

    def test_chart_placeholder(self, stocks):
        result = self.interpreter.interpret("Draw a chart of trading volume", stocks)
        assert result.rows_affected == stocks.row_count
        assert "placeholder" in result.text
        assert str(stocks.row_count) in result.text

    def test_default_summary(self, stocks):
        result = self.interpreter.interpret("hello there", stocks)
        assert result.rows_affected == stocks.row_count
        assert f"{stocks.row_count} rows and {stocks.column_count} columns" in result.text

    def test_suggested_prompts_all_match_a_rule(self, stocks):
        for prompt in SUGGESTED_PROMPTS:
            assert "I analyzed your query" not in self.interpreter.interpret(prompt, stocks).text


class TestRuleOrder:
    """First matching rule wins, matching ignores case."""

    def test_market_cap_beats_technology(self, stocks):
        result = RuleBasedInterpreter().interpret("TOP MARKET CAP in tech", stocks)
        assert result.rows_affected == 5
        assert "market capitalization" in result.text

    def test_ytd_needs_positive(self, stocks):
        result = RuleBasedInterpreter().interpret("ytd returns overall", stocks)
        assert "I analyzed your query" in result.text

    def test_pe_ratio_spelling(self, stocks):
        result = RuleBasedInterpreter().interpret("stocks with a high pe ratio", stocks)
        assert "P/E ratios above" in result.text


class TestMissingColumns:
    """Rules never fail when the expected columns are absent."""

    def test_non_numeric_and_missing_values_count_as_zero(self):
        dataset = Dataset.from_records([
            {"Symbol": "A", "Market Cap": "n/a", "YTD Return": None},
            {"Symbol": "B", "Market Cap": 2, "YTD Return": 3},
            {"Symbol": "C", "Market Cap": -1, "YTD Return": "up"},
        ])
        interpreter = RuleBasedInterpreter()
        top = interpreter.interpret("top market cap", dataset)
        assert top.rows_affected == 3
        assert top.text.index("1. B") < top.text.index("2. A") < top.text.index("3. C")
        assert interpreter.interpret("positive ytd", dataset).rows_affected == 1

    def test_absent_columns(self):
        dataset = Dataset.from_records([{"a": 1}])
        interpreter = RuleBasedInterpreter()
        assert interpreter.interpret("positive ytd", dataset).rows_affected == 0
        assert interpreter.interpret("tech", dataset).rows_affected == 0
        assert interpreter.interpret("top market cap", dataset).rows_affected == 1

    def test_missing_market_cap_renders_na(self):
        dataset = Dataset.from_records([{"Symbol": "A"}, {"Symbol": "B", "Market Cap": None}])
        text = RuleBasedInterpreter().interpret("top market cap", dataset).text
        assert "1. A - n/a" in text
        assert "2. B - n/a" in text
        assert "$" not in text

    def test_dataset_untouched(self, stocks):
        before = [dict(row) for row in stocks.rows]
        RuleBasedInterpreter().interpret("top market cap", stocks)
        assert [dict(row) for row in stocks.rows] == before


class TestInterface:
    """A custom interpreter can stand in for the rule-based one."""

    def test_subclass(self, stocks):
        class Echo(QueryInterpreter):
            def interpret(self, prompt, dataset):
                return Interpretation(prompt.upper(), dataset.row_count)

        assert Echo().interpret("hi", stocks) == Interpretation("HI", stocks.row_count)

    def test_find_column(self):
        headers = ["Symbol", "market_cap", "P/E Ratio"]
        assert find_column(headers, "market cap") == "market_cap"
        assert find_column(headers, "p/e") == "P/E Ratio"
        assert find_column(headers, "volume") is None
        assert numeric_value(None) == 0.0
