"""Tests for guard condition evaluation (modforge.modifier.conditions).

Covers:
- MODULE_EXISTS / MODULE_NOT_EXISTS membership
- PATTERN_EXISTS / PATTERN_NOT_EXISTS incl. missing files and read errors
- PATTERN_COUNT with every operator and defaults
- FILE_EXISTS / FILE_NOT_EXISTS target resolution
- Group evaluation (AND / OR, empty groups, full trace)
- Evaluation never touches the file system
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from modforge.catalog.models import (
    ComparisonOperator,
    Condition,
    ConditionGroup,
    ConditionKind,
    LogicOperator,
)
from modforge.modifier.conditions import evaluate_condition, evaluate_group

pytestmark = pytest.mark.unit


def _cond(kind: ConditionKind, **kwargs) -> Condition:
    return Condition(kind=kind, **kwargs)


class TestModuleConditions:
    def test_selected(self, make_context):
        ctx = make_context({"auth", "router"})
        result = evaluate_condition(_cond(ConditionKind.MODULE_EXISTS, value="auth"), ctx)
        assert result.passed is True
        assert "auth" in result.reason
        assert "is selected" in result.reason

    def test_not_selected(self, make_context):
        ctx = make_context({"router"})
        assert not evaluate_condition(_cond(ConditionKind.MODULE_EXISTS, value="auth"), ctx).passed
        assert evaluate_condition(_cond(ConditionKind.MODULE_NOT_EXISTS, value="auth"), ctx).passed

    def test_module_not_exists_fails_when_selected(self, make_context):
        ctx = make_context({"auth"})
        result = evaluate_condition(_cond(ConditionKind.MODULE_NOT_EXISTS, value="auth"), ctx)
        assert result.passed is False

    def test_missing_value_fails(self, make_context):
        ctx = make_context({"auth"})
        assert not evaluate_condition(_cond(ConditionKind.MODULE_EXISTS), ctx).passed
        assert not evaluate_condition(_cond(ConditionKind.MODULE_NOT_EXISTS), ctx).passed


class TestPatternConditions:
    def test_pattern_found_in_default_target(self, make_context, write_file):
        write_file("src/App.tsx", "import React from 'react'\n<Router>\n")
        result = evaluate_condition(
            _cond(ConditionKind.PATTERN_EXISTS, value="<Router>"), make_context(), "src/App.tsx"
        )
        assert result.passed is True
        assert "found in src/App.tsx" in result.reason

    def test_explicit_target_overrides_default(self, make_context, write_file):
        write_file("a.txt", "alpha")
        write_file("b.txt", "beta")
        cond = _cond(ConditionKind.PATTERN_EXISTS, value="beta", target="b.txt")
        assert evaluate_condition(cond, make_context(), "a.txt").passed

    def test_pattern_absent(self, make_context, write_file):
        write_file("a.txt", "alpha")
        ctx = make_context()
        assert not evaluate_condition(_cond(ConditionKind.PATTERN_EXISTS, value="zeta"), ctx, "a.txt").passed
        assert evaluate_condition(_cond(ConditionKind.PATTERN_NOT_EXISTS, value="zeta"), ctx, "a.txt").passed

    def test_missing_file_means_pattern_absent(self, make_context):
        ctx = make_context()
        present = evaluate_condition(_cond(ConditionKind.PATTERN_EXISTS, value="x"), ctx, "nope.txt")
        absent = evaluate_condition(_cond(ConditionKind.PATTERN_NOT_EXISTS, value="x"), ctx, "nope.txt")
        assert present.passed is False
        assert absent.passed is True
        assert "does not exist" in absent.reason

    def test_read_error_fails_open_for_absent_and_closed_for_present(self, make_context, write_file):
        write_file("a.txt", "x")
        ctx = make_context()
        with patch.object(Path, "read_text", side_effect=PermissionError("denied")):
            present = evaluate_condition(_cond(ConditionKind.PATTERN_EXISTS, value="x"), ctx, "a.txt")
            absent = evaluate_condition(_cond(ConditionKind.PATTERN_NOT_EXISTS, value="x"), ctx, "a.txt")
        assert present.passed is False
        assert absent.passed is True
        assert "denied" in absent.reason

    def test_stat_error_stays_local(self, make_context):
        ctx = make_context()
        with patch.object(Path, "exists", side_effect=PermissionError("denied")):
            absent = evaluate_condition(
                _cond(ConditionKind.PATTERN_NOT_EXISTS, value="x"), ctx, "locked/a.txt"
            )
            present = evaluate_condition(_cond(ConditionKind.PATTERN_EXISTS, value="x"), ctx, "locked/a.txt")
            counted = evaluate_condition(
                _cond(ConditionKind.PATTERN_COUNT, value="x", count=0), ctx, "locked/a.txt"
            )
        assert absent.passed is True
        assert present.passed is False
        assert counted.passed is False
        assert "denied" in absent.reason

    def test_no_target_fails(self, make_context):
        result = evaluate_condition(_cond(ConditionKind.PATTERN_EXISTS, value="x"), make_context())
        assert result.passed is False
        assert "no target" in result.reason


class TestPatternCount:
    def test_equals_two(self, make_context, write_file):
        write_file("a.txt", "foo bar foo")
        cond = _cond(
            ConditionKind.PATTERN_COUNT, value="foo", operator=ComparisonOperator.EQUALS, count=2
        )
        result = evaluate_condition(cond, make_context(), "a.txt")
        assert result.passed is True
        assert "occurs 2 time(s)" in result.reason
        assert "== 2" in result.reason

    @pytest.mark.parametrize(
        "operator,count,expected",
        [
            (ComparisonOperator.NOT_EQUALS, 3, False),
            (ComparisonOperator.GREATER_THAN, 2, True),
            (ComparisonOperator.LESS_THAN, 3, False),
            (ComparisonOperator.GREATER_OR_EQUAL, 3, True),
            (ComparisonOperator.LESS_OR_EQUAL, 2, False),
        ],
    )
    def test_operators(self, make_context, write_file, operator, count, expected):
        write_file("a.txt", "x x x")
        cond = _cond(ConditionKind.PATTERN_COUNT, value="x", operator=operator, count=count)
        assert evaluate_condition(cond, make_context(), "a.txt").passed is expected

    def test_defaults_to_equals_zero(self, make_context, write_file):
        write_file("a.txt", "nothing here")
        cond = _cond(ConditionKind.PATTERN_COUNT, value="foo")
        assert evaluate_condition(cond, make_context(), "a.txt").passed is True

    def test_non_overlapping_count(self, make_context, write_file):
        write_file("a.txt", "aaaa")
        cond = _cond(ConditionKind.PATTERN_COUNT, value="aa", count=2)
        assert evaluate_condition(cond, make_context(), "a.txt").passed is True

    def test_missing_file_is_false(self, make_context):
        cond = _cond(ConditionKind.PATTERN_COUNT, value="foo", count=0)
        assert evaluate_condition(cond, make_context(), "nope.txt").passed is False


class TestFileConditions:
    def test_exists_via_value(self, make_context, write_file):
        write_file("src/a.txt", "")
        ctx = make_context()
        assert evaluate_condition(_cond(ConditionKind.FILE_EXISTS, value="src/a.txt"), ctx).passed
        assert not evaluate_condition(_cond(ConditionKind.FILE_NOT_EXISTS, value="src/a.txt"), ctx).passed

    def test_target_takes_precedence_over_value(self, make_context, write_file):
        write_file("real.txt", "")
        cond = _cond(ConditionKind.FILE_EXISTS, value="ghost.txt", target="real.txt")
        assert evaluate_condition(cond, make_context()).passed

    def test_not_exists(self, make_context):
        result = evaluate_condition(_cond(ConditionKind.FILE_NOT_EXISTS, value="ghost.txt"), make_context())
        assert result.passed is True
        assert "does not exist" in result.reason

    def test_default_target_not_used(self, make_context, write_file):
        write_file("a.txt", "")
        result = evaluate_condition(_cond(ConditionKind.FILE_EXISTS), make_context(), "a.txt")
        assert result.passed is False

    def test_stat_error_fails_both_polarities(self, make_context):
        ctx = make_context()
        with patch.object(Path, "exists", side_effect=PermissionError("denied")):
            exists = evaluate_condition(_cond(ConditionKind.FILE_EXISTS, value="locked/a.txt"), ctx)
            missing = evaluate_condition(_cond(ConditionKind.FILE_NOT_EXISTS, value="locked/a.txt"), ctx)
        assert exists.passed is False
        assert missing.passed is False
        assert "could not check locked/a.txt" in missing.reason
        assert "denied" in missing.reason


class TestGroups:
    def test_empty_and_group_passes(self, make_context):
        result = evaluate_group(ConditionGroup(), make_context())
        assert result.passed is True
        assert result.results == []

    def test_empty_or_group_fails(self, make_context):
        assert evaluate_group(ConditionGroup(logic=LogicOperator.OR), make_context()).passed is False

    def test_and_requires_all(self, make_context):
        group = ConditionGroup(
            conditions=(
                _cond(ConditionKind.MODULE_EXISTS, value="a"),
                _cond(ConditionKind.MODULE_EXISTS, value="b"),
            )
        )
        assert evaluate_group(group, make_context({"a", "b"})).passed
        assert not evaluate_group(group, make_context({"a"})).passed

    def test_or_requires_any_and_keeps_full_trace(self, make_context):
        group = ConditionGroup(
            logic=LogicOperator.OR,
            conditions=(
                _cond(ConditionKind.MODULE_EXISTS, value="a"),
                _cond(ConditionKind.MODULE_EXISTS, value="b"),
                _cond(ConditionKind.MODULE_EXISTS, value="c"),
            ),
        )
        result = evaluate_group(group, make_context({"a"}))
        assert result.passed is True
        assert [r.passed for r in result.results] == [True, False, False]

    def test_and_trace_complete_after_failure(self, make_context):
        group = ConditionGroup(
            conditions=(
                _cond(ConditionKind.MODULE_EXISTS, value="missing"),
                _cond(ConditionKind.MODULE_EXISTS, value="a"),
            )
        )
        result = evaluate_group(group, make_context({"a"}))
        assert result.passed is False
        assert len(result.results) == 2

    def test_evaluation_does_not_modify_tree(self, make_context, write_file, tmp_project_dir):
        write_file("a.txt", "foo")
        before = {p: p.read_bytes() for p in tmp_project_dir.rglob("*") if p.is_file()}
        group = ConditionGroup(
            conditions=(
                _cond(ConditionKind.PATTERN_EXISTS, value="foo"),
                _cond(ConditionKind.PATTERN_COUNT, value="foo", count=1),
                _cond(ConditionKind.FILE_NOT_EXISTS, value="b.txt"),
            )
        )
        evaluate_group(group, make_context(), "a.txt")
        after = {p: p.read_bytes() for p in tmp_project_dir.rglob("*") if p.is_file()}
        assert before == after
