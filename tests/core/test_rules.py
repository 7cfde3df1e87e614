"""Tests for the validation rules and the rule engine."""

import pytest


def _outcomes(source, file_id="053f3", config=None):
    from kvglint.core.parser import parse
    from kvglint.core.rules import validate

    return dict(validate(file_id, parse(source), config))


# ─────────────────────────────────────────────────────────────────────────────
# Engine
# ─────────────────────────────────────────────────────────────────────────────


class TestRuleEngine:
    """Tests for RuleEngine and RulesConfig."""

    def test_valid_file_passes_every_rule(self, sample_document):
        from kvglint.core.rules import ALL_RULES, Passed, RuleEngine

        results = RuleEngine().validate("053f3", sample_document)

        assert [name for name, _ in results] == [rule.name for rule in ALL_RULES]
        assert all(isinstance(outcome, Passed) for _, outcome in results)

    def test_eleven_rules_in_fixed_order(self):
        from kvglint.core.rules import ALL_RULES

        assert [rule.name for rule in ALL_RULES] == [
            "width-and-height",
            "viewbox",
            "stroke-root-group-id",
            "stroke-root-group-style",
            "stroke-groups-ids",
            "stroke-ids",
            "number-root-group-id",
            "number-root-group-style",
            "stroke-numbers-count",
            "number-order",
            "number-positions",
        ]

    def test_enabled_subset_keeps_canonical_order(self, sample_document):
        from kvglint.core.rules import RuleEngine, RulesConfig

        engine = RuleEngine(RulesConfig(enabled=["number-order", "viewbox"]))
        assert [name for name, _ in engine.validate("053f3", sample_document)] == [
            "viewbox",
            "number-order",
        ]

    def test_all_is_case_insensitive(self):
        from kvglint.core.rules import ALL_RULES, RulesConfig

        assert RulesConfig(enabled=["ALL"]).enabled_rules() == list(ALL_RULES)

    def test_unknown_rule_name_raises(self):
        from kvglint.core.rules import RuleEngine, RulesConfig

        with pytest.raises(ValueError, match="no-such-rule"):
            RuleEngine(RulesConfig(enabled=["no-such-rule"]))

    def test_from_dict(self):
        from kvglint.core.rules import RulesConfig

        config = RulesConfig.from_dict(
            {
                "enabled": "viewbox, stroke-ids",
                "canvas_size": 100,
                "max_number_distance": 8,
                "number_root_style": {"font-size": 8},
            }
        )
        assert config.enabled == ["viewbox", "stroke-ids"]
        assert config.canvas_size == 100
        assert config.max_number_distance == 8.0
        assert config.number_root_style == {"font-size": "8"}
        assert config.stroke_root_style["stroke-width"] == "3"

    def test_from_empty_dict_gives_defaults(self):
        from kvglint.core.rules import RulesConfig

        assert RulesConfig.from_dict({}) == RulesConfig()

    def test_outcome_strings(self):
        from kvglint.core.rules import PASSED, Error, Failed

        assert str(PASSED) == "PASSED"
        assert str(Failed("x")) == "FAILED: x"
        assert str(Error("y")) == "ERROR: y"
        assert (PASSED.status, Failed("x").status, Error("y").status) == (
            "passed",
            "failed",
            "error",
        )


# ─────────────────────────────────────────────────────────────────────────────
# Canvas
# ─────────────────────────────────────────────────────────────────────────────


class TestCanvasRules:
    """Tests for width-and-height and viewbox."""

    def test_wrong_width(self):
        from kvglint.core.rules import Failed
        from tests.core.svg_test_helpers import edited

        outcome = _outcomes(edited('width="109"', 'width="110"'))["width-and-height"]
        assert outcome == Failed("width=110 (expected 109)")

    def test_wrong_width_and_height(self):
        from tests.core.svg_test_helpers import edited

        source = edited('width="109" height="109"', 'width="100" height="99"')
        outcome = _outcomes(source)["width-and-height"]
        assert outcome.reason == "width=100 (expected 109), height=99 (expected 109)"

    def test_wrong_view_box(self):
        from kvglint.core.rules import Failed
        from tests.core.svg_test_helpers import edited

        outcome = _outcomes(edited('viewBox="0 0 109 109"', 'viewBox="1 0 109 109"'))["viewbox"]
        assert outcome == Failed("viewBox='1 0 109 109', expected '0 0 109 109'")

    def test_canvas_size_is_configurable(self):
        from kvglint.core.rules import Passed, RulesConfig
        from tests.core.svg_test_helpers import edited

        source = edited(
            'width="109" height="109" viewBox="0 0 109 109"',
            'width="100" height="100" viewBox="0 0 100 100"',
        )
        outcomes = _outcomes(source, config=RulesConfig(canvas_size=100))
        assert isinstance(outcomes["width-and-height"], Passed)
        assert isinstance(outcomes["viewbox"], Passed)


# ─────────────────────────────────────────────────────────────────────────────
# Ids
# ─────────────────────────────────────────────────────────────────────────────


class TestIdRules:
    """Tests for the four id rules."""

    def test_expected_ids(self):
        from kvglint.core.rules import (
            expected_group_id,
            expected_number_root_id,
            expected_stroke_id,
            expected_stroke_root_id,
        )

        assert expected_stroke_root_id("04e00") == "kvg:StrokePaths_04e00"
        assert expected_number_root_id("04e00") == "kvg:StrokeNumbers_04e00"
        assert expected_group_id("04e00", 0) == "kvg:04e00"
        assert expected_group_id("04e00", 2) == "kvg:04e00-g2"
        assert expected_stroke_id("04e00", 0) == "kvg:04e00-s1"

    def test_other_file_id_fails_every_id_rule(self, sample_document):
        from kvglint.core.rules import Failed, validate

        outcomes = dict(validate("053f4", sample_document))
        for name in (
            "stroke-root-group-id",
            "number-root-group-id",
            "stroke-groups-ids",
            "stroke-ids",
        ):
            assert isinstance(outcomes[name], Failed), name

    def test_root_id_message(self, sample_document):
        from kvglint.core.rules import validate

        outcome = dict(validate("053f4", sample_document))["stroke-root-group-id"]
        assert outcome.reason == "id=kvg:StrokePaths_053f3, expected 'kvg:StrokePaths_053f4'"

    def test_stroke_ids_are_numbered_depth_first(self):
        from tests.core.svg_test_helpers import edited

        source = edited('id="kvg:053f3-s3"', 'id="kvg:053f3-s1"')
        outcome = _outcomes(source)["stroke-ids"]
        assert outcome.reason == (
            "mismatched ids (actual != expected): [kvg:053f3-s1 != kvg:053f3-s3]"
        )

    def test_group_ids_are_numbered_depth_first(self):
        from kvglint.core.rules import Passed
        from tests.core.svg_test_helpers import edited

        source = edited('id="kvg:053f3-g2"', 'id="kvg:053f3-g3"')
        outcomes = _outcomes(source)
        assert "kvg:053f3-g3 != kvg:053f3-g2" in outcomes["stroke-groups-ids"].reason
        assert isinstance(outcomes["stroke-ids"], Passed)

    def test_nested_group_ids_follow_pre_order(self):
        from kvglint.core.rules import Failed, Passed
        from tests.core.svg_test_helpers import minimal_svg, nested_group_body

        pre_order = minimal_svg(group_body=nested_group_body())
        assert isinstance(_outcomes(pre_order, "04e00")["stroke-groups-ids"], Passed)

        # Direct children first, then their nested groups
        level_order = minimal_svg(group_body=nested_group_body(("g1", "g3", "g2", "g4")))
        assert _outcomes(level_order, "04e00")["stroke-groups-ids"] == Failed(
            "mismatched ids (actual != expected): "
            "[kvg:04e00-g3 != kvg:04e00-g2, kvg:04e00-g2 != kvg:04e00-g3]"
        )

    def test_variant_file_id(self):
        from kvglint.core.parser import parse
        from kvglint.core.rules import Passed, validate
        from tests.core.svg_test_helpers import sample_svg

        results = validate("053f3-Kaisho", parse(sample_svg("053f3-Kaisho")))
        assert all(isinstance(outcome, Passed) for _, outcome in results)


# ─────────────────────────────────────────────────────────────────────────────
# Styles
# ─────────────────────────────────────────────────────────────────────────────


class TestStyleRules:
    """Tests for the two root group style rules."""

    def test_missing_key(self):
        from tests.core.svg_test_helpers import edited

        outcome = _outcomes(edited("stroke-linecap:round;", ""))["stroke-root-group-style"]
        assert outcome.reason == (
            "invalid style on element [svg > g:first-child]: missing keys: ['stroke-linecap']"
        )

    def test_wrong_value(self):
        from tests.core.svg_test_helpers import edited

        outcome = _outcomes(edited("stroke-width:3;", "stroke-width:2;"))["stroke-root-group-style"]
        assert outcome.reason == (
            "invalid style on element [svg > g:first-child]: "
            "wrong values: [stroke-width='2' (expected '3')]"
        )

    def test_extra_key_on_number_root(self):
        from tests.core.svg_test_helpers import edited

        source = edited('style="font-size:8;fill:#808080"', 'style="font-size:8;fill:#808080;stroke:red"')
        outcome = _outcomes(source)["number-root-group-style"]
        assert outcome.reason == (
            "invalid style on element [svg > g:last-child]: extra keys: ['stroke']"
        )

    def test_all_problems_reported_together(self):
        from tests.core.svg_test_helpers import edited

        source = edited('style="font-size:8;fill:#808080"', 'style="fill:#000000;color:red"')
        reason = _outcomes(source)["number-root-group-style"].reason
        assert "missing keys: ['font-size']" in reason
        assert "wrong values: [fill='#000000' (expected '#808080')]" in reason
        assert "extra keys: ['color']" in reason

    def test_configured_number_style(self):
        from kvglint.core.rules import Passed, RulesConfig
        from tests.core.svg_test_helpers import edited

        source = edited('style="font-size:8;fill:#808080"', 'style="font-size:10;fill:#808080"')
        config = RulesConfig(number_root_style={"font-size": "10", "fill": "#808080"})
        assert isinstance(_outcomes(source, config=config)["number-root-group-style"], Passed)


# ─────────────────────────────────────────────────────────────────────────────
# Stroke numbers
# ─────────────────────────────────────────────────────────────────────────────


class TestStrokeNumberRules:
    """Tests for stroke-numbers-count, number-order and number-positions."""

    def test_count_mismatch(self):
        from kvglint.core.rules import Failed
        from tests.core.svg_test_helpers import edited

        source = edited('\t<text transform="matrix(1 0 0 1 48.50 95.13)">5</text>\n', "")
        outcome = _outcomes(source)["stroke-numbers-count"]
        assert outcome == Failed("#strokes = 5, #numbers = 4")

    def test_swapped_numbers_fail_order_only(self):
        from kvglint.core.rules import Failed, Passed
        from tests.core.svg_test_helpers import edited

        source = edited("63.13)\">3</text>", "63.13)\">4</text>")
        source = edited("55.13)\">4</text>", "55.13)\">3</text>", source)
        outcomes = _outcomes(source)
        assert outcomes["number-order"] == Failed(
            "number order is [1, 2, 4, 3, 5], expected [1, 2, 3, 4, 5]"
        )
        assert isinstance(outcomes["stroke-numbers-count"], Passed)

    def test_numbers_not_starting_at_one(self):
        from kvglint.core.rules import Failed
        from tests.core.svg_test_helpers import minimal_svg

        numbers = "\n".join(
            f'<text transform="matrix(1 0 0 1 4.25 54.13)">{n}</text>' for n in (2, 3, 4)
        )
        outcome = _outcomes(minimal_svg(numbers_body=numbers), "04e00")["number-order"]
        assert outcome == Failed("number order is [2, 3, 4], expected [1, 2, 3]")

    @pytest.mark.parametrize(
        "old, new",
        [
            ("matrix(1 0 0 1 11.50 37.13)", "matrix(1 0 0 1 1e999 37.13)"),
            ('d="M18.5,37.5c3', 'd="M1e999,37.5c3'),
            ('d="M18.5,37.5c3', 'd="M-1e999,37.5c3'),
        ],
    )
    def test_overflowing_coordinates_are_too_far(self, old, new):
        from kvglint.core.rules import Failed
        from tests.core.svg_test_helpers import edited

        outcome = _outcomes(edited(old, new))["number-positions"]
        assert isinstance(outcome, Failed)
        assert "1 has distance inf." in outcome.reason

    def test_infinite_label_on_infinite_start_is_too_far(self):
        from kvglint.core.rules import Failed
        from tests.core.svg_test_helpers import edited

        source = edited("matrix(1 0 0 1 11.50 37.13)", "matrix(1 0 0 1 1e999 37.13)")
        source = edited('d="M18.5,37.5c3', 'd="M1e999,37.5c3', source)
        outcomes = _outcomes(source)
        assert len(outcomes) == 11
        assert outcomes["number-positions"] == Failed(
            "These numbers are too far from starting points of their strokes: "
            "1 has distance nan. Maximum allowed distance is 12.0"
        )

    def test_number_too_far(self):
        from tests.core.svg_test_helpers import edited

        source = edited("matrix(1 0 0 1 11.50 37.13)", "matrix(1 0 0 1 80.50 37.13)")
        reason = _outcomes(source)["number-positions"].reason
        assert reason.startswith(
            "These numbers are too far from starting points of their strokes: 1 has distance 62"
        )
        assert reason.endswith("Maximum allowed distance is 12.0")

    def test_max_distance_is_configurable(self, sample_source):
        from kvglint.core.rules import Failed, RulesConfig

        config = RulesConfig(max_number_distance=5.0)
        outcome = _outcomes(sample_source, config=config)["number-positions"]
        assert isinstance(outcome, Failed)
        assert "Maximum allowed distance is 5.0" in outcome.reason

    def test_path_without_move_to_is_an_error(self):
        from kvglint.core.rules import Error
        from tests.core.svg_test_helpers import edited

        source = edited('d="M45.8,86.1c9.6', 'd="L45.8,86.1c9.6')
        outcome = _outcomes(source)["number-positions"]
        assert isinstance(outcome, Error)
        assert "must start with a 'move-to' instruction" in outcome.reason

    def test_extra_labels_are_not_measured(self):
        from kvglint.core.rules import Failed, Passed
        from tests.core.svg_test_helpers import edited

        extra = '\t<text transform="matrix(1 0 0 1 100 100)">6</text>\n</g>\n</svg>'
        source = edited("\n</g>\n</svg>", "\n" + extra)
        outcomes = _outcomes(source)
        assert isinstance(outcomes["stroke-numbers-count"], Failed)
        assert isinstance(outcomes["number-positions"], Passed)

    @pytest.mark.parametrize(
        "path, start",
        [
            ("M18.5,37.5c3,0.5", (18.5, 37.5)),
            ("m 10 20 l 1 1", (10.0, 20.0)),
            ("M10-20", (10.0, -20.0)),
            ("  M.5,.25", (0.5, 0.25)),
            ("M1e1,2", (10.0, 2.0)),
        ],
    )
    def test_path_start(self, path, start):
        from kvglint.core.rules import path_start

        assert path_start(path) == start

    def test_path_start_requires_move_to(self):
        from kvglint.core.rules import path_start

        assert path_start("L10,20") is None
        assert path_start("") is None
